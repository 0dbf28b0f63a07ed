import logging
import secrets
import string
import time
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.db.models import Q

from core.utils import parse_pagination
from .models import Payment

logger = logging.getLogger(__name__)

CENTS = Decimal('0.01')
BASE36_ALPHABET = string.digits + string.ascii_lowercase


def calculate_platform_fee(amount):
    """Split ``amount`` into (platform_fee, worker_amount), rounding the fee half-up to the cent."""
    amount = Decimal(str(amount))
    rate = Decimal(str(settings.PLATFORM_FEE_RATE))
    platform_fee = (amount * rate).quantize(CENTS, rounding=ROUND_HALF_UP)
    return platform_fee, amount - platform_fee


def generate_transaction_id():
    timestamp = str(int(time.time() * 1000))
    suffix = ''.join(secrets.choice(BASE36_ALPHABET) for _ in range(6))
    return f"TXN{timestamp}{suffix}".upper()


def record_payment(gig, payment_method=None):
    """Create the pending payment owed for a completed gig."""
    platform_fee, worker_amount = calculate_platform_fee(gig.total_amount)
    payment = Payment.objects.create(
        gig=gig,
        store=gig.store,
        worker=gig.worker,
        amount=gig.total_amount,
        platform_fee=platform_fee,
        worker_amount=worker_amount,
        payment_method=payment_method or settings.PAYMENT_DEFAULT_METHOD,
    )
    logger.info(
        f"Recorded payment {payment.pk} for gig {gig.pk}: amount={payment.amount} "
        f"fee={payment.platform_fee} worker={payment.worker_amount}"
    )
    return payment


def list_payments_for(user, status=None, page=1, limit=10):
    page, limit = parse_pagination(page, limit)
    payments = Payment.objects.filter(Q(store=user) | Q(worker=user)).select_related('gig', 'store', 'worker')
    if status:
        payments = payments.filter(status=status)
    total = payments.count()
    offset = (page - 1) * limit
    return list(payments[offset:offset + limit]), total
