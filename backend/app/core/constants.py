import enum


class UserRole(str, enum.Enum):
    """أدوار المستخدمين"""
    ADMIN = "admin"               # الإدارة
    DONOR = "donor"               # المتبرعون (مطاعم، متاجر، فنادق)
    CHARITY = "charity"           # الجمعيات الخيرية المستفيدة
    VOLUNTEER = "volunteer"       # المتطوعون (نقل التبرعات)


class DonationStatus(str, enum.Enum):
    """حالات التبرع"""
    PENDING = "pending"           # معلق - في انتظار المطابقة
    ASSIGNED = "assigned"         # مخصص - تم تعيين متطوع وجمعية
    PICKED_UP = "picked_up"       # تم الاستلام من المتبرع
    DELIVERED = "delivered"       # تم التسليم للجمعية
    CANCELLED = "cancelled"       # ملغي


class FoodType(str, enum.Enum):
    """أنواع الطعام"""
    PREPARED_MEALS = "prepared_meals"  # وجبات جاهزة
    GROCERIES = "groceries"            # مواد غذائية
    PRODUCE = "produce"                # خضر وفواكه
    BAKERY = "bakery"                  # مخبوزات
    OTHER = "other"                    # أخرى


class Operation(str, enum.Enum):
    """العمليات التي يقيّمها محرك الصلاحيات"""
    READ = "read"
    WRITE = "write"
    VERIFY = "verify"
    CONFIRM_PICKUP = "confirm_pickup"
    CONFIRM_DELIVERY = "confirm_delivery"
    CANCEL_ASSIGNMENT = "cancel_assignment"


# انتقالات الحالة المسموح بها
DONATION_TRANSITIONS = {
    DonationStatus.PENDING: {DonationStatus.ASSIGNED, DonationStatus.CANCELLED},
    DonationStatus.ASSIGNED: {DonationStatus.PICKED_UP, DonationStatus.CANCELLED, DonationStatus.PENDING},
    DonationStatus.PICKED_UP: {DonationStatus.DELIVERED},
    DonationStatus.DELIVERED: set(),
    DonationStatus.CANCELLED: set(),
}

TERMINAL_STATUSES = {DonationStatus.DELIVERED, DonationStatus.CANCELLED}

# حالات التبرع التي يكون فيها المتطوع مشغولاً
ACTIVE_PICKUP_STATUSES = {DonationStatus.ASSIGNED, DonationStatus.PICKED_UP}

DEFAULT_VOLUNTEER_RATING = 5.0
MIN_PICKUP_RATING = 1
MAX_PICKUP_RATING = 5
