# Registrar todos los modelos para que las relaciones se resuelvan por nombre
from models.users import User
from models.tokens import Token
from models.customers import Customer
from models.customer_notes import CustomerNote
from models.tables import Table
from models.reservations import Reservation
from models.menu import MenuCategory, MenuItem
