# streamlit run frontend/app.py
import datetime
import time

import streamlit as st

from frontend.client import BACKEND_URL, generate, load_image

# ==========================
# Config
# ==========================
st.set_page_config(
    page_title="Image Proxy",
    page_icon="🎨",
    layout="wide"
)

st.title("🎨 Image Proxy")
st.caption("Text-to-image through one uniform JSON contract")

# ==========================
# State
# ==========================
if "messages" not in st.session_state:
    st.session_state["messages"] = [{
        "role": "assistant",
        "content": "Describe the image you want. 💬",
    }]

# ==========================
# Sidebar
# ==========================
with st.sidebar:
    st.header("⚙️ Settings")

    model = st.text_input("Model", value="turbo", help="Forwarded to the backend as-is")
    timeout_sec = st.slider("Poll timeout (s)", min_value=30, max_value=600, value=300, step=30)

    st.markdown("---")

    if st.button("🗑️ Clear chat", use_container_width=True):
        st.session_state["messages"] = [{
            "role": "assistant",
            "content": "History cleared. 💬",
        }]
        st.rerun()

    num_images = len([m for m in st.session_state["messages"] if "image" in m])
    st.markdown(f"**🖼️ Images:** {num_images}")

    st.markdown("---")
    st.markdown("### 💡 Examples")
    st.code("a red fox in the snow")
    st.code("isometric city at night, neon")

    st.markdown("---")
    st.write("🔗 Backend:", BACKEND_URL)

# ==========================
# History
# ==========================
for msg in st.session_state["messages"]:
    with st.chat_message(msg["role"]):
        st.markdown(msg["content"])

        if "image" in msg:
            col1, col2, col3 = st.columns([1, 2, 1])
            with col2:
                st.image(msg["image"], use_container_width=True)

        if msg.get("download_data"):
            st.download_button(
                "⬇️ Download",
                data=msg["download_data"],
                file_name=f"image_{msg['timestamp']}.png",
                mime=msg.get("mime", "image/png"),
                key=f"download_{msg['timestamp']}"
            )

# ==========================
# Prompt
# ==========================
user_prompt = st.chat_input("💭 Describe an image...")

if user_prompt:
    st.session_state["messages"].append({"role": "user", "content": user_prompt})

    with st.chat_message("assistant"):
        try:
            started = time.time()
            with st.spinner("🎨 Generating..."):
                result = generate(user_prompt, model=model or None, timeout_sec=float(timeout_sec))

            if not result:
                st.error("⏱️ Timed out, please try again.")
                st.session_state["messages"].append({"role": "assistant", "content": "❌ Timeout."})

            elif result.get("error"):
                error_msg = result["error"]
                if result.get("details"):
                    error_msg += f" ({result['details']})"
                st.error(f"❌ {error_msg}")
                st.session_state["messages"].append({"role": "assistant", "content": f"❌ {error_msg}"})

            elif result.get("status") == "completed" and result.get("imageUrl"):
                image, img_bytes, mime = load_image(result["imageUrl"])
                elapsed = time.time() - started
                ts = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
                st.session_state["messages"].append({
                    "role": "assistant",
                    "content": f"✨ Done in {elapsed:.1f}s via **{result.get('provider', '?')}**",
                    "image": image,
                    "download_data": img_bytes,
                    "mime": mime,
                    "timestamp": ts,
                })

            else:
                st.warning("⚠️ Unexpected response from the proxy")
                st.session_state["messages"].append({"role": "assistant", "content": "⚠️ Unexpected response."})

        except Exception as e:
            st.error(f"❌ {e}")
            st.session_state["messages"].append({"role": "assistant", "content": f"❌ {e}"})

    st.rerun()
