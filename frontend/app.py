# frontend/app.py
import json

import streamlit as st

from frontend.client import BACKEND_URL, build_query, fetch_screenshot

st.set_page_config(page_title="Screenshot preview", layout="wide")

# --- UI Layout ---
col1, col2 = st.columns(2)

with col1:
    st.header("Capture Options")
    url = st.text_input("Page URL", placeholder="https://example.com")
    width = st.number_input("Width", min_value=100, max_value=4096, value=1920)
    height = st.number_input("Height", min_value=100, max_value=10000, value=1080)
    image_format = st.selectbox("Format", ["png", "jpeg", "webp"])
    quality = st.slider("Quality", 1, 100, 90, disabled=image_format == "png")
    mode = st.radio("Capture", ["Viewport", "Full page", "Clip"], horizontal=True)
    clip = None
    if mode == "Clip":
        c1, c2, c3, c4 = st.columns(4)
        clip = {
            "x": c1.number_input("x", value=0),
            "y": c2.number_input("y", value=0),
            "width": c3.number_input("clip width", min_value=1, value=800),
            "height": c4.number_input("clip height", min_value=1, value=600),
        }

    with st.expander("Page & device"):
        wait_for = st.text_input("Wait for selector", placeholder="#content")
        wait_time = st.number_input("Extra wait (ms)", min_value=0, value=0, step=250)
        user_agent = st.text_input("User agent")
        headers_text = st.text_area("Extra headers (JSON)", value="{}")
        device_scale = st.number_input("Device scale factor", min_value=0.5, max_value=4.0, value=1.0, step=0.5)
        mobile = st.checkbox("Mobile")
        landscape = st.checkbox("Landscape")
        timeout = st.number_input("Timeout (s)", min_value=1, max_value=120, value=30)

    run_btn = st.button("Capture", disabled=not url)

with col2:
    st.header("Preview")
    st.caption(f"Backend: {BACKEND_URL}")
    if run_btn:
        try:
            headers = json.loads(headers_text or "{}")
        except ValueError:
            st.error("Extra headers must be a JSON object.")
            st.stop()
        params = build_query(
            url, width=width, height=height, image_format=image_format,
            quality=quality if image_format != "png" else None,
            full_page=mode == "Full page", clip=clip, headers=headers,
            wait_for=wait_for, wait_time=wait_time, user_agent=user_agent,
            device_scale=device_scale, mobile=mobile, landscape=landscape, timeout=timeout,
        )
        with st.spinner("Rendering page..."):
            img, error = fetch_screenshot(params)
        if error:
            st.error(f"Backend error: {error}")
        else:
            st.image(img, use_container_width=True)
            st.download_button("Download", img, file_name=f"screenshot.{image_format}",
                               mime=f"image/{image_format}")
