from restopos.models.restaurant import Restaurant
from restopos.models.table import Table, TableStatus
from restopos.models.product import Product, ProductSize, ProductAddon, StockStatus
from restopos.models.stock_log import StockLog, StockLogType
from restopos.models.discount import Discount, DiscountType
from restopos.models.customer import Customer, LoyaltyTransaction, LoyaltyTransactionType
from restopos.models.order import Order, OrderStatus, KitchenStatus, OrderType
from restopos.models.order_item import OrderItem, AddonSnapshot
from restopos.models.payment import Payment, PaymentMethod, PaymentStatus
