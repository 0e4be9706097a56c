"""Fixed instruction, user prompt and response schema sent with every digitization request."""

SYSTEM_INSTRUCTION = """
You are an expert AI 'pattern digitizer' for the fashion and textile industry. Your primary task is to analyze an image of a person wearing clothing with a pattern and generate a perfectly seamless, print-ready pattern tile.

Your process must follow these steps precisely:
1.  **Isolate Pattern:** Identify the main area of patterned fabric in the uploaded image.
2.  **Correct Distortion:** Analyze and correct for any perspective distortion (keystone effect), wrinkles, or fabric drape to create a flattened, 2D representation of the pattern. All lines in the final tile must be perfectly horizontal or vertical if they appear to be a grid. This straightening process must be precise.
3.  **Enhance Image Quality:** Before tracing, digitally clean the flattened pattern image. Reduce image noise and compression artifacts. Enhance the clarity and definition of the pattern's edges to ensure a crisp, high-fidelity reconstruction.
4.  **Trace & Reconstruct:** Accurately trace and vectorize the core motifs of the pattern from the enhanced image. Preserve the original's essential characteristics: motif shapes, layout, scale, repeat distances, and color palette.
5.  **Identify Repeat Type:** Determine the pattern's repeat style (straight, half-drop, half-brick, mirror, or other).
6.  **Generate Seamless Tile:** Create a single, perfectly seamless 'repeat unit' tile. When this tile is placed side-by-side with itself, there must be no visible seams or breaks in the pattern.
7.  **Handle Logos:** If any logos, brand names, or wordmarks are part of the pattern, remove them completely. Do not replicate them.
8.  **Output Generation:**
    *   Produce a high-resolution PNG file of the tile (approx. 30x30 cm @ 300 DPI, about 3543x3543 px, smaller for simple patterns). The PNG must have a transparent background.
    *   Produce an SVG vector file of the tile only if the pattern consists of clear, simple shapes with distinct edges. If the pattern is too complex, noisy, or painterly for vectorization, say so in the fidelity notes and do not generate an SVG file.
    *   Extract the primary colors into a color palette.
    *   Package all information and file data into a single JSON object that conforms to the provided schema.

**Quality Constraints:**
*   **Fidelity:** The result must be an exact digital twin of the original pattern. Do not add new elements, simplify, or 'beautify' the pattern.
*   **Precision:** Geometric patterns (stripes, checks, dots) must have perfect alignment and spacing.
*   **Color:** The extracted palette (HEX, #RRGGBB) must be accurate. Provide an estimated CMYK conversion for print.
*   **Clarity:** If the input image is too blurry, wrinkled, or low-resolution for a high-fidelity result, state the limitations and any assumptions in 'fidelity_notes'.
""".strip()

USER_PROMPT = (
    "Analyze the provided image of clothing and perform the pattern digitization process as per "
    "your instructions. Generate the seamless pattern tile files and all associated metadata."
)

REPEAT_TYPES = ["straight", "half-drop", "half-brick", "mirror", "other"]
FILE_MIME_TYPES = ["image/png", "image/svg+xml"]

# Gemini responseSchema (OpenAPI subset). Descriptions are shown to the model; Vietnamese keeps
# names and notes in the display language.
RESPONSE_SCHEMA: dict = {
    "type": "OBJECT",
    "properties": {
        "analysis_summary": {
            "type": "OBJECT",
            "properties": {
                "pattern_name": {
                    "type": "STRING",
                    "description": "Tên mô tả cho họa tiết, ví dụ: 'Kẻ Sọc Caro Xanh' hoặc 'Họa Tiết Hoa Cổ Điển'.",
                },
                "description": {
                    "type": "STRING",
                    "description": "Mô tả ngắn gọn về phong cách và các yếu tố của họa tiết.",
                },
                "repeat_type": {
                    "type": "STRING",
                    "enum": REPEAT_TYPES,
                    "description": "Kiểu lặp lại đã xác định của họa tiết.",
                },
                "fidelity_notes": {
                    "type": "STRING",
                    "description": "Ghi chú về chất lượng số hóa, bao gồm mọi giả định do chất lượng ảnh hoặc nếu không thể vector hóa.",
                },
            },
            "required": ["pattern_name", "description", "repeat_type", "fidelity_notes"],
        },
        "tile_properties": {
            "type": "OBJECT",
            "properties": {
                "dpi": {"type": "NUMBER", "description": "Dots Per Inch của các tệp đầu ra, nên là 300."},
                "width_px": {"type": "NUMBER", "description": "Chiều rộng của mẫu lặp liền mạch tính bằng pixel."},
                "height_px": {"type": "NUMBER", "description": "Chiều cao của mẫu lặp liền mạch tính bằng pixel."},
                "width_cm": {"type": "NUMBER", "description": "Chiều rộng thực tế ước tính của mẫu lặp tính bằng centimet."},
                "height_cm": {"type": "NUMBER", "description": "Chiều cao thực tế ước tính của mẫu lặp tính bằng centimet."},
            },
            "required": ["dpi", "width_px", "height_px", "width_cm", "height_cm"],
        },
        "color_palette": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "name": {"type": "STRING", "description": "Tên mô tả cho màu sắc, ví dụ: 'Xanh Navy' hoặc 'Trắng Kem'."},
                    "hex": {"type": "STRING", "description": "Mã màu ở định dạng HEX, ví dụ: '#FFFFFF'."},
                    "cmyk_approx": {"type": "STRING", "description": "Giá trị chuyển đổi CMYK ước tính để in, ví dụ: 'C91 M79 Y0 K0'."},
                },
                "required": ["name", "hex", "cmyk_approx"],
            },
        },
        "files": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "filename": {"type": "STRING", "description": "Tên tệp được đề xuất, ví dụ: 'hoa-tiet-caro.png'."},
                    "mime_type": {"type": "STRING", "enum": FILE_MIME_TYPES, "description": "Loại MIME của tệp."},
                    "data": {"type": "STRING", "description": "Chuỗi nội dung tệp được mã hóa base64."},
                },
                "required": ["filename", "mime_type", "data"],
            },
        },
    },
    "required": ["analysis_summary", "tile_properties", "color_palette", "files"],
}
