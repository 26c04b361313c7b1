from dabba.models.user import User
from dabba.models.cook import Cook
from dabba.models.menu_item import MenuItem
from dabba.models.order_item import OrderItem
from dabba.models.order import Order
from dabba.models.cook_payment import CookPayment
from dabba.models.order_event import OrderEvent

# add ALL models here
