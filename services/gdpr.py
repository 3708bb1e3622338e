"""Estado de cumplimiento GDPR de un cliente."""
import math
from datetime import datetime, timedelta
from typing import Any, Dict

from models.customers import Customer

# Plazo de conservación de datos (7 años)
RETENTION_PERIOD = timedelta(days=7 * 365)


def consent_score(customer: Customer) -> int:
    consents = [customer.data_processing_consent, customer.email_consent, customer.marketing_consent]
    return int(math.floor(100 * sum(1 for c in consents if c) / len(consents) + 0.5))


def gdpr_status(customer: Customer, reservation_count: int, note_count: int, now: datetime) -> Dict[str, Any]:
    """Resumen de consentimientos, inventario de datos y derechos del cliente."""
    data_age = now - customer.created_at
    retention_ok = data_age < RETENTION_PERIOD

    warnings = []
    if customer.consent_date is None:
        warnings.append("No consent date recorded")
    if not retention_ok:
        warnings.append("Data retention period exceeded")
    if not customer.data_processing_consent:
        warnings.append("No data processing consent")

    return {
        "customer_id": customer.id,
        "customer_name": f"{customer.first_name} {customer.last_name}",
        "email": customer.email,
        "consent_status": {
            "data_processing_consent": customer.data_processing_consent,
            "email_consent": customer.email_consent,
            "marketing_consent": customer.marketing_consent,
            "consent_date": customer.consent_date,
            "consent_score": consent_score(customer),
        },
        "data_inventory": {
            "total_reservations": reservation_count,
            "total_notes": note_count,
            "account_age_days": data_age.days,
        },
        "compliance": {
            "has_valid_consent": customer.data_processing_consent and customer.consent_date is not None,
            "can_send_emails": customer.email_consent,
            "can_send_marketing": customer.marketing_consent,
            "data_retention_compliant": retention_ok,
            "last_consent_update": customer.consent_date,
            "account_created": customer.created_at,
            "last_data_update": customer.updated_at,
        },
        "rights": {
            "can_request_export": True,
            # Solo se puede borrar un cliente sin reservas
            "can_request_deletion": reservation_count == 0,
            "can_revoke_consent": True,
            "can_update_consent": True,
        },
        "warnings": warnings,
    }
