from stitchup.models.user import User
from stitchup.models.enquiry import Enquiry, EnquiryMessage
from stitchup.models.order import Order
from stitchup.models.cart_item import CartItem
from stitchup.models.otp_challenge import OtpChallenge
from stitchup.models.sms_message_log import SmsMessageLog
