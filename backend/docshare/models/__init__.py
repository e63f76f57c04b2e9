from .document import Document
from .link import Link
from .link_visitor import LinkVisitor
from .user import User

__all__ = ["Document", "Link", "LinkVisitor", "User"]
