"""User-facing message catalog."""

from typing import Optional

from .config import config

DEFAULT_LANGUAGE = "en"

CATALOG: dict[str, dict[str, str]] = {
    "en": {
        # Progress
        "reading_file": "Reading file {index}/{total}: {name}...",
        "downloading_url": "Downloading video from URL...",
        "resolving_platform": "Getting a watermark-free TikTok link...",
        "downloading_platform": "Downloading TikTok video to temporary memory...",
        "encoding": "Encoding video to Base64...",
        "uploading": "Sending {size_mb:.2f} MB to Google Gemini...",
        "awaiting_ai": "AI is watching the video and writing the script (please wait)...",
        "parsing": "Processing the AI response...",
        "analyzing_url": "Downloading and analyzing video from URL...",
        # Outcomes
        "item_done": "Finished {name}",
        "item_failed": "Error {name}: {error}",
        "batch_done": "Finished {succeeded}/{total} videos!",
        "batch_all_failed": "Could not process any video. Please check the files.",
        "url_saved": "Script saved!",
        "url_failed": "Error analyzing URL {url}: {error}",
        "save_failed": "Could not sync {name}; it is kept locally only.",
        "tag_save_failed": "Could not save tags!",
        "optimized": "Script optimized and saved!",
        "optimize_failed": "Error while optimizing.",
        "deleted": "Script deleted.",
        "delete_failed": "Error deleting script.",
        "migrated": "Moved {count} guest scripts to your account.",
        "load_failed": "Error loading scripts from the cloud.",
        "migrate_failed": "Could not move guest scripts to your account.",
        "signed_out": "Signed out.",
        # Placeholders
        "url_title": "URL Analysis",
        "format_error_title": "Format error (see details)",
        "format_error_type": "Analysis error",
        "format_error_visual": "The AI replied, but not in the expected JSON format.",
        "placeholder_type": "Shot",
        "placeholder_visual": "No description",
        "placeholder_audio": "No dialogue",
        # Export
        "export_product": "Product",
        "export_scene": "Scene",
        "export_visual": "Visual description",
        "export_audio": "Spoken script",
        # Errors
        "error_file_too_large": "{name} is too large ({size_mb:.2f} MB, limit {limit_mb:.2f} MB)",
        "error_read_failed": "Could not read {name}",
        "error_resolution_failed": "Could not get a playable video for {url}",
        "error_download_blocked": "Download of {url} was blocked ({attempts} attempts)",
        "error_download_failed": "Could not download {url} ({attempts} attempts)",
        "error_not_a_video": "{name} did not return a video (got {content_type})",
        "error_missing_api_key": "GEMINI_API_KEY is not set",
        "error_analysis_timeout": "AI analysis timed out after {timeout_seconds:g}s",
        "error_analysis_refused": "The AI returned an empty response",
        "error_malformed_response": "The AI response is not valid script JSON",
        "error_optimization_failed": "Could not optimize script {script_id}",
        "error_write_failed": "Could not save script {script_id}",
        "error_list_failed": "Could not load scripts for {owner_id}",
        "error_delete_failed": "Could not delete script {script_id}",
    },
    "vi": {
        "reading_file": "Đang đọc file {index}/{total}: {name}...",
        "downloading_url": "Đang tải video từ URL...",
        "resolving_platform": "Đang lấy link tải TikTok không logo...",
        "downloading_platform": "Đang tải video TikTok về bộ nhớ tạm...",
        "encoding": "Đang mã hóa video sang Base64...",
        "uploading": "Đang gửi {size_mb:.2f} MB dữ liệu lên Google Gemini...",
        "awaiting_ai": "AI đang xem video và viết kịch bản (Vui lòng đợi)...",
        "parsing": "Đang xử lý kết quả trả về...",
        "analyzing_url": "Đang tải và phân tích video từ URL...",
        "item_done": "Đã xong {name}",
        "item_failed": "Lỗi {name}: {error}",
        "batch_done": "Đã hoàn thành {succeeded}/{total} video!",
        "batch_all_failed": "Không thể xử lý video nào. Vui lòng kiểm tra lại file.",
        "url_saved": "Đã lưu kịch bản!",
        "url_failed": "Lỗi khi phân tích URL {url}: {error}",
        "save_failed": "Không đồng bộ được {name}; chỉ lưu trên máy.",
        "tag_save_failed": "Lỗi lưu tag lên Cloud!",
        "optimized": "Đã tối ưu và cập nhật Cloud!",
        "optimize_failed": "Lỗi khi tối ưu hóa.",
        "deleted": "Đã xóa kịch bản.",
        "delete_failed": "Lỗi khi xóa kịch bản.",
        "migrated": "Đã chuyển {count} kịch bản khách sang tài khoản của bạn.",
        "load_failed": "Lỗi tải dữ liệu từ Cloud.",
        "migrate_failed": "Không thể chuyển kịch bản khách sang tài khoản của bạn.",
        "signed_out": "Đã đăng xuất.",
        "url_title": "Phân tích URL",
        "format_error_title": "Lỗi định dạng (Xem chi tiết)",
        "format_error_type": "Lỗi phân tích",
        "format_error_visual": "AI đã trả về kết quả nhưng không đúng định dạng JSON.",
        "placeholder_type": "Cảnh quay",
        "placeholder_visual": "Không có mô tả",
        "placeholder_audio": "Không có lời thoại",
        "export_product": "Sản phẩm",
        "export_scene": "Phân cảnh",
        "export_visual": "Mô tả hình ảnh",
        "export_audio": "Kịch bản phát ngôn",
        "error_file_too_large": "File {name} quá lớn ({size_mb:.2f} MB, tối đa {limit_mb:.2f} MB)",
        "error_read_failed": "Không thể đọc {name}",
        "error_resolution_failed": "Không lấy được link video từ {url}",
        "error_download_blocked": "Tải video {url} bị chặn (đã thử {attempts} lần)",
        "error_download_failed": "Không thể tải video từ {url} (đã thử {attempts} lần)",
        "error_not_a_video": "{name} không trả về video (nhận được {content_type})",
        "error_missing_api_key": "Chưa cấu hình GEMINI_API_KEY",
        "error_analysis_timeout": "AI phân tích quá thời gian ({timeout_seconds:g}s)",
        "error_analysis_refused": "AI không trả về kết quả",
        "error_malformed_response": "Kết quả AI không đúng định dạng JSON",
        "error_optimization_failed": "Không thể tối ưu kịch bản {script_id}",
        "error_write_failed": "Không thể lưu kịch bản {script_id}",
        "error_list_failed": "Không thể tải kịch bản của {owner_id}",
        "error_delete_failed": "Không thể xóa kịch bản {script_id}",
    },
}


def t(key: str, language: Optional[str] = None, **kwargs) -> str:
    """Look up a message in the user's language and fill its placeholders."""
    lang = language or config.language
    table = CATALOG.get(lang, CATALOG[DEFAULT_LANGUAGE])
    template = table.get(key) or CATALOG[DEFAULT_LANGUAGE][key]
    return template.format(**kwargs) if kwargs else template
