from .access import router as access
from .auth import profile_router as profile
from .auth import router as auth
from .documents import contacts_router as contacts
from .documents import router as documents
from .links import router as links
