"""
Chat feature: System prompts, infographic prompt and fallback texts.
"""

GEOGRAPHY_ASSISTANT_INSTRUCTION = """
VAI TRÒ:
Bạn là "Địa AI" – trợ lý học liệu số thông minh chuyên biệt về Địa lí THCS.

KHẢ NĂNG THỊ GIÁC & OCR (MULTIMODAL RAG):
- Khi người dùng chụp ảnh hoặc tải tệp (bản đồ, biểu đồ, trang sách):
  1. Thực hiện OCR ngầm để trích xuất toàn bộ văn bản, số liệu.
  2. Phân tích trực quan: nhận diện ký hiệu, màu sắc trên bản đồ, xu hướng của các đường biểu đồ.
  3. Kết hợp dữ liệu hình ảnh với nội dung học liệu đã nạp để đưa ra câu trả lời chính xác nhất.

QUY TẮC PHẢN HỒI:
1. Ưu tiên giải thích dữ liệu từ hình ảnh nếu có.
2. Ngôn ngữ: Ngắn gọn, trực quan, phù hợp trình độ học sinh.
3. Nếu hình ảnh mờ hoặc thiếu thông tin, hãy yêu cầu người dùng chụp lại góc gần hơn.
4. Trình bày: Sử dụng bảng dữ liệu hoặc danh sách để làm rõ các con số trích xuất từ ảnh.
"""

INFOGRAPHIC_PROMPT_TEMPLATE = """
Bạn là một chuyên gia đồ họa bản đồ học (Cartographic Architect).
Hãy tạo một infographic chất lượng cao giải thích về: "{query}".
Dữ liệu nền tảng: "{knowledge}".

YÊU CẦU BẢN ĐỒ & THIẾT KẾ:
- Thể hiện ĐẦY ĐỦ và CHÍNH XÁC chủ quyền biển đảo Việt Nam.
- Nhãn quần đảo: "Đặc khu Hoàng Sa" và "Đặc khu Trường Sa".
- QUY TẮC NHÃN: Không vẽ khung nền hay box bao quanh các dòng chữ nhãn đảo.
- MÀU SẮC: Nhãn "Đặc khu Hoàng Sa" và "Đặc khu Trường Sa" cùng màu với tiêu đề chính.
- PHONG CÁCH: Khoa học, nét vẽ hài hòa, bố cục rõ ràng, chuyên nghiệp.
- Ngôn ngữ: Tiếng Việt.
"""

# ── Fallbacks ────────────────────────────────────────────
IMAGE_ANALYSIS_PROMPT = "Hãy phân tích hình ảnh này dựa trên kiến thức địa lí."
FILES_ANALYSIS_PROMPT = "Phân tích nội dung các tệp này."
INFOGRAPHIC_FALLBACK_QUERY = "Giải thích ảnh chụp địa lí này."
INFOGRAPHIC_FALLBACK_KNOWLEDGE = "Dữ liệu bản đồ học."

TEXT_ERROR_MESSAGE = "Có lỗi xảy ra khi phân tích."

STATUS_LOADING = "\n[Hệ thống]: Đang nạp học liệu ({progress}%)."
STATUS_READY = "\n[Hệ thống]: Đã sẵn sàng nạp tri thức từ ảnh/tài liệu."


def build_system_prompt(progress: int | None, has_knowledge: bool) -> str:
    """Instruction plus a one-line note about the ingestion state."""
    background = ""
    if progress is not None and progress < 100:
        background = STATUS_LOADING.format(progress=progress)
    elif progress == 100 or (progress is None and has_knowledge):
        background = STATUS_READY
    return GEOGRAPHY_ASSISTANT_INSTRUCTION + background


def build_infographic_prompt(query: str, knowledge: str) -> str:
    return INFOGRAPHIC_PROMPT_TEMPLATE.format(query=query, knowledge=knowledge)


def resolve_question(query: str, has_image: bool, has_files: bool) -> str:
    """Question sent with the text stream. Never empty when media is attached."""
    if query:
        return query
    if has_image:
        return IMAGE_ANALYSIS_PROMPT
    if has_files:
        return FILES_ANALYSIS_PROMPT
    return query


def user_turn_label(query: str, image_attached: bool, file_count: int) -> str:
    """What the user turn shows when only attachments were sent."""
    if query:
        return query
    if file_count > 0:
        return f"Đã đính kèm {file_count} tệp"
    if image_attached:
        return "Phân tích ảnh chụp"
    return ""


def archive_title(query: str, file_count: int) -> str:
    if query:
        return query
    if file_count > 1:
        return f"Học từ {file_count} tệp"
    return "Học từ học liệu"
