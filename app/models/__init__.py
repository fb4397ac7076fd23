from app.db.base_class import Base
from app.models.guestbook import Guestbook
