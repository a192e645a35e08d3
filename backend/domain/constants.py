"""
Domain constants used across services/routers.
"""

# Rate limiter actions
ACTION_CREATE_ORDER = "create_order"

# Audit log actions
AUDIT_ORDER_STATUS_CHANGED = "order.status_changed"

# Settings keys
SETTING_PURCHASE_EVENT = "purchase_event"

# National mobile numbering plan: 05/06/07 + 8 digits
PHONE_PATTERN = r"^0[567][0-9]{8}$"

USER_AGENT_MAX_LENGTH = 500

# Upper bound on a single cart line
MAX_LINE_QUANTITY = 100

# Conversion event names
EVENT_PURCHASE = "Purchase"
BROWSER_EVENTS = frozenset({"ViewContent", "AddToCart", "InitiateCheckout"})

# ── Customer-facing messages (Arabic storefront) ─────────────────────
MSG_NAME_REQUIRED = "الاسم مطلوب"
MSG_INVALID_PHONE = "رقم الهاتف غير صحيح"
MSG_UNKNOWN_REGION = "الولاية غير موجودة"
MSG_INVALID_DELIVERY_TYPE = "نوع التوصيل غير صحيح"
MSG_ADDRESS_REQUIRED = "العنوان مطلوب للتوصيل المنزلي"
MSG_EMPTY_CART = "السلة فارغة"
MSG_INVALID_CART_ITEM = "عنصر غير صالح في السلة"
MSG_INVALID_REQUEST = "بيانات الطلب غير صالحة"
MSG_BOT_VERIFICATION_FAILED = "فشل التحقق الأمني"
MSG_IP_RATE_LIMITED = "تم تجاوز الحد المسموح من الطلبات"
MSG_PHONE_RATE_LIMITED = "تم تجاوز الحد المسموح من الطلبات لهذا الرقم"
MSG_DUPLICATE_ORDER = "هذا الطلب مسجل مسبقاً"
MSG_PRODUCTS_UNAVAILABLE = "بعض المنتجات غير متاحة"
MSG_PRODUCTS_LOAD_FAILED = "خطأ في تحميل المنتجات"
MSG_SHIPPING_UNAVAILABLE = "التوصيل غير متاح لهذه الولاية"
MSG_ORDER_CREATE_FAILED = "خطأ في إنشاء الطلب"
MSG_ORDER_NOT_FOUND = "الطلب غير موجود"
MSG_UNEXPECTED_ERROR = "حدث خطأ غير متوقع"
MSG_INVALID_STATUS = "حالة الطلب غير صالحة"
MSG_INVALID_STATUS_TRANSITION = "لا يمكن تغيير حالة الطلب إلى هذه الحالة"
MSG_UNSUPPORTED_EVENT = "نوع الحدث غير مدعوم"
MSG_TOO_MANY_REQUESTS = "طلبات كثيرة، حاول لاحقاً"
