from crm_portal.app.db.base_class import Base

# Import models to register metadata for Base.metadata.create_all in tests
from crm_portal.app.models.user import User  # noqa: F401
from crm_portal.app.models.organisation import Organisation  # noqa: F401
from crm_portal.app.models.contact import Contact  # noqa: F401
from crm_portal.app.models.lead import Lead  # noqa: F401
from crm_portal.app.models.client import Client  # noqa: F401
from crm_portal.app.models.invoice import Invoice  # noqa: F401
from crm_portal.app.models.invoice_line_item import InvoiceLineItem  # noqa: F401
from crm_portal.app.models.payment import Payment  # noqa: F401
from crm_portal.app.models.champion import Champion  # noqa: F401
from crm_portal.app.models.activity import Activity  # noqa: F401
from crm_portal.app.models.email import EmailCampaign, EmailTemplate, SentEmail  # noqa: F401
