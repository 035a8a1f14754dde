from .pdf_parser import parse_pdf, parse_pdf_file
from .sms_parser import parse_sms, parse_sms_batch, parse_sms_or_raise
