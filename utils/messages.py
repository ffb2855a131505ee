from typing import Optional

from config import settings
from utils.exceptions import AttendanceError

TRANSLATIONS = {
    "ar": {
        "error": "حدث خطأ غير متوقع.",
        "permission_denied": "تم رفض الإذن. يرجى تفعيله من إعدادات المتصفح.",
        "device_unavailable": "لم يتم العثور على كاميرا في هذا الجهاز.",
        "device_busy": "الكاميرا مستخدمة حالياً، حاول مرة أخرى.",
        "location_timeout": "انتهت مهلة تحديد الموقع. يرجى تفعيل نظام تحديد المواقع (GPS) للمتابعة.",
        "position_unavailable": "تعذر تحديد موقعك الحالي.",
        "validation_error": "البيانات المدخلة غير صالحة.",
        "persistence_error": "تعذر حفظ السجل. سيتم الاحتفاظ به محلياً حتى إعادة المحاولة.",
        "auth_error": "بيانات الدخول غير صحيحة.",
        "flow_in_progress": "هناك عملية تسجيل قيد التنفيذ بالفعل.",
        "invalid_transition": "لا يمكن تنفيذ هذه الخطوة الآن.",
        "not_found": "العنصر غير موجود.",
        "forbidden": "ليست لديك صلاحية لهذا الإجراء.",
    },
    "en": {
        "error": "An unexpected error occurred.",
        "permission_denied": "Permission denied. Please enable it in your browser settings.",
        "device_unavailable": "No camera was found on this device.",
        "device_busy": "The camera is in use, please try again.",
        "location_timeout": "Location request timed out. Please enable GPS to continue.",
        "position_unavailable": "Your current position could not be determined.",
        "validation_error": "The submitted data is invalid.",
        "persistence_error": "The record could not be saved. It is kept locally until you retry.",
        "auth_error": "Invalid login credentials.",
        "flow_in_progress": "A check-in is already in progress.",
        "invalid_transition": "This step is not available right now.",
        "not_found": "Item not found.",
        "forbidden": "You are not allowed to do this.",
    },
}


def localize(error: AttendanceError, lang: Optional[str] = None) -> str:
    """Return the user-facing text for ``error`` in ``lang``."""
    table = TRANSLATIONS.get(lang or settings.DEFAULT_LANGUAGE, TRANSLATIONS["en"])
    return table.get(error.code, table["error"])
