from relief_stock.core.serials.models import SerialNumberCounter, SerialType
from relief_stock.core.serials.issuer import SerialNumberIssuer, get_serial_number

__all__ = ["SerialNumberCounter", "SerialType", "SerialNumberIssuer", "get_serial_number"]
