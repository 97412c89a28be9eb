"""Domain modules package."""

from lessonbook.modules.admin import models as admin_models  # noqa: F401
from lessonbook.modules.billing import models as billing_models  # noqa: F401
from lessonbook.modules.booking import models as booking_models  # noqa: F401
from lessonbook.modules.lessons import models as lessons_models  # noqa: F401
