from .user import User, UserRole, Nickname
from .category import Category
from .item import Item
from .rental import Rental, RentalMessage
from .counter import Counter
from .app_settings import AppSettings
