from restaurant_ops.models.business import Business, BusinessLocation, BusinessPhoneNumber
from restaurant_ops.models.delivery_zone import DeliveryZone
from restaurant_ops.models.delivery_company import DeliveryCompany
from restaurant_ops.models.driver import Driver
from restaurant_ops.models.whatsapp_customer import WhatsAppCustomer
from restaurant_ops.models.whatsapp_chat import WhatsAppChat
from restaurant_ops.models.chat_message import ChatMessage
from restaurant_ops.models.whatsapp_template_status import WhatsAppTemplateStatus
