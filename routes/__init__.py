from .health import health_bp
from .orders import orders_bp
from .bookings import bookings_bp
from .payments import payments_bp
from .payment_webhook import webhook_bp
