from hms.models.reservation import Customer, Reservation, Room
from hms.models.finance import Expense, Payment
from hms.models.billing import BillingInvoice, BillingInvoiceItem
from hms.models.inventory import InventoryItem, InventoryTransaction
from hms.models.hr import HotelSettings, HrRecord
