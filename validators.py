"""
Input Validation & Sanitization Utilities
Provides validation for CRM request payloads, note attachments, and user input
"""
import re
import os
from decimal import Decimal, InvalidOperation
from typing import Dict, Any, List, Optional, Tuple
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename
import logging

logger = logging.getLogger(__name__)

# Allowed file extensions by category
ALLOWED_IMAGE_EXTENSIONS = {'png', 'jpg', 'jpeg', 'gif', 'webp', 'heic'}
ALLOWED_DOCUMENT_EXTENSIONS = {'pdf', 'doc', 'docx', 'txt', 'xlsx', 'csv'}
ALLOWED_ATTACHMENT_EXTENSIONS = ALLOWED_IMAGE_EXTENSIONS | ALLOWED_DOCUMENT_EXTENSIONS

# Maximum file sizes (in bytes)
MAX_IMAGE_SIZE = 10 * 1024 * 1024  # 10MB
MAX_ATTACHMENT_SIZE = 20 * 1024 * 1024  # 20MB

# Regex patterns
EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
PHONE_PATTERN = re.compile(r'^\+?\d{9,15}$')
URL_PATTERN = re.compile(r'^https?://[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}.*$')
TIME_PATTERN = re.compile(r'^([01]\d|2[0-3]):[0-5]\d$')

# Enumerations accepted by the API
CONTACT_TYPES = {'client', 'supplier', 'other'}
COMMISSION_TYPES = {'percentage', 'fixed'}
CATALOG_ITEM_TYPES = {'product', 'labour', 'material', 'service', 'consumable'}
UNITS_OF_MEASURE = {'each', 'hour', 'day', 'metre', 'sqm', 'litre', 'kg', 'set', 'pack', 'fixed'}
QUOTE_ITEM_TYPES = {'labour', 'material', 'other'}
DISCOUNT_TYPES = {'percentage', 'fixed'}
QUOTE_RESPONSES = {'pending', 'accepted', 'declined'}
NOTE_VISIBILITY = {'internal', 'partner', 'all'}
SEO_PLATFORMS = {'facebook', 'instagram', 'google_business'}
SEO_POST_STATUSES = {'draft', 'pending_review', 'approved', 'posted'}
PERSONAL_TASK_TYPES = {'personal', 'appointment', 'morning_routine'}
WEEKDAYS = {'monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday'}


class ValidationError(Exception):
    """Custom exception for validation errors"""
    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(self.message)


def validate_required_fields(data: Dict[str, Any], required_fields: List[str]) -> Tuple[bool, Optional[str]]:
    """
    Validate that all required fields are present in the data

    Args:
        data: Dictionary of input data
        required_fields: List of required field names

    Returns:
        Tuple of (is_valid, error_message)
    """
    missing_fields = [
        field for field in required_fields
        if field not in data or data[field] is None or (isinstance(data[field], str) and not data[field].strip())
    ]

    if missing_fields:
        return False, f"Missing required fields: {', '.join(missing_fields)}"

    return True, None


def validate_email(email: str) -> Tuple[bool, Optional[str]]:
    """
    Validate email format

    Args:
        email: Email address to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not email or not isinstance(email, str):
        return False, "Email must be a non-empty string"

    if not EMAIL_PATTERN.match(email):
        return False, "Invalid email format"

    if len(email) > 254:  # RFC 5321
        return False, "Email address too long"

    return True, None


def validate_phone(phone: str) -> Tuple[bool, Optional[str]]:
    """
    Validate phone number format

    Args:
        phone: Phone number to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not phone or not isinstance(phone, str):
        return False, "Phone must be a non-empty string"

    # Remove common separators
    cleaned_phone = re.sub(r'[\s\-\(\)]', '', phone)

    if not PHONE_PATTERN.match(cleaned_phone):
        return False, "Invalid phone number format"

    return True, None


def validate_url(url: str) -> Tuple[bool, Optional[str]]:
    """Validate URL format"""
    if not url or not isinstance(url, str):
        return False, "URL must be a non-empty string"

    if not URL_PATTERN.match(url):
        return False, "Invalid URL format"

    if len(url) > 2048:
        return False, "URL too long"

    return True, None


def validate_time_of_day(value: str) -> Tuple[bool, Optional[str]]:
    """Validate a 24-hour HH:MM time string"""
    if not isinstance(value, str) or not TIME_PATTERN.match(value):
        return False, "Time must be in HH:MM format"
    return True, None


def validate_string_length(value: str, min_length: int = 0, max_length: int = 1000) -> Tuple[bool, Optional[str]]:
    """
    Validate string length is within acceptable range

    Args:
        value: String to validate
        min_length: Minimum allowed length
        max_length: Maximum allowed length

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(value, str):
        return False, "Value must be a string"

    if len(value) < min_length:
        return False, f"Value too short (minimum {min_length} characters)"

    if len(value) > max_length:
        return False, f"Value too long (maximum {max_length} characters)"

    return True, None


def to_decimal(value: Any) -> Optional[Decimal]:
    """
    Convert a JSON number or numeric string to Decimal.

    Returns None when the value is not numeric. Booleans are rejected
    even though they are ints in Python.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not result.is_finite():
        return None
    return result


def validate_number_range(value: Any, min_value: Optional[float] = None, max_value: Optional[float] = None,
                          exclusive_min: bool = False) -> Tuple[bool, Optional[str]]:
    """
    Validate number is within acceptable range

    Args:
        value: Number (or numeric string) to validate
        min_value: Minimum allowed value
        max_value: Maximum allowed value
        exclusive_min: Whether min_value itself is rejected

    Returns:
        Tuple of (is_valid, error_message)
    """
    number = to_decimal(value)
    if number is None:
        return False, "Value must be a number"

    if min_value is not None:
        if exclusive_min and number <= Decimal(str(min_value)):
            return False, f"Value must be greater than {min_value}"
        if number < Decimal(str(min_value)):
            return False, f"Value too small (minimum {min_value})"

    if max_value is not None and number > Decimal(str(max_value)):
        return False, f"Value too large (maximum {max_value})"

    return True, None


def validate_decimal_places(value: Any, places: int = 2) -> Tuple[bool, Optional[str]]:
    """Validate a number has no more than `places` decimal places"""
    number = to_decimal(value)
    if number is None:
        return False, "Value must be a number"
    if number != number.quantize(Decimal(10) ** -places):
        return False, f"Value allows at most {places} decimal places"
    return True, None


def sanitize_string(value: str, max_length: int = 1000) -> str:
    """
    Sanitize string input by removing potentially dangerous characters

    Args:
        value: String to sanitize
        max_length: Maximum allowed length

    Returns:
        Sanitized string
    """
    if not isinstance(value, str):
        return str(value)

    sanitized = value.replace('\x00', '').strip()

    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length]

    return sanitized


def sanitize_filename(filename: str) -> str:
    """Sanitize filename to prevent directory traversal attacks"""
    safe_name = secure_filename(filename)

    # If secure_filename removes everything, generate a default name
    if not safe_name:
        safe_name = 'file'

    return safe_name


def validate_file_extension(filename: str, allowed_extensions: set) -> Tuple[bool, Optional[str]]:
    """
    Validate file has an allowed extension

    Args:
        filename: Filename to check
        allowed_extensions: Set of allowed extensions (without dots)

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not filename or '.' not in filename:
        return False, "File must have an extension"

    extension = filename.rsplit('.', 1)[1].lower()

    if extension not in allowed_extensions:
        return False, f"File type not allowed. Allowed types: {', '.join(sorted(allowed_extensions))}"

    return True, None


def validate_file_upload(
    file: FileStorage,
    allowed_extensions: set,
    max_size: int,
    file_type: str = "file"
) -> Tuple[bool, Optional[str], Optional[str]]:
    """
    Comprehensive file upload validation

    Args:
        file: FileStorage object from request.files
        allowed_extensions: Set of allowed extensions
        max_size: Maximum file size in bytes
        file_type: Type of file for error messages

    Returns:
        Tuple of (is_valid, error_message, sanitized_filename)
    """
    if not file or not file.filename:
        return False, f"No {file_type} provided", None

    safe_filename = sanitize_filename(file.filename)

    is_valid, error = validate_file_extension(safe_filename, allowed_extensions)
    if not is_valid:
        return False, error, None

    # Measure the stream rather than trusting Content-Length
    file.seek(0, os.SEEK_END)
    file_size = file.tell()
    file.seek(0)

    if file_size > max_size:
        max_mb = max_size / (1024 * 1024)
        return False, f"{file_type.capitalize()} too large (maximum {max_mb:.1f}MB)", None

    if file_size == 0:
        return False, f"{file_type.capitalize()} is empty", None

    logger.info(f"File validation successful: {safe_filename} ({file_size} bytes)")
    return True, None, safe_filename


def validate_attachment_upload(file: FileStorage) -> Tuple[bool, Optional[str], Optional[str]]:
    """Validate a job note attachment"""
    return validate_file_upload(file, ALLOWED_ATTACHMENT_EXTENSIONS, MAX_ATTACHMENT_SIZE, "attachment")


# =============================================================================
# DOMAIN PAYLOADS
# =============================================================================

def _check_choice(data: Dict[str, Any], field: str, choices: set) -> Tuple[bool, Optional[str]]:
    value = data.get(field)
    if value is not None and value not in choices:
        return False, f"Invalid {field}: must be one of {', '.join(sorted(choices))}"
    return True, None


def _check_contact_fields(data: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    if data.get('email'):
        is_valid, error = validate_email(data['email'])
        if not is_valid:
            return False, f"Invalid email: {error}"
    if data.get('phone'):
        is_valid, error = validate_phone(data['phone'])
        if not is_valid:
            return False, f"Invalid phone: {error}"
    return True, None


def validate_contact(data: Dict[str, Any], partial: bool = False) -> Tuple[bool, Optional[str]]:
    """
    Validate a contact payload

    Args:
        data: Request data dictionary
        partial: True for updates, where required fields may be omitted

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object"

    if not partial or 'name' in data:
        is_valid, error = validate_required_fields(data, ['name'])
        if not is_valid:
            return False, error
        is_valid, error = validate_string_length(data['name'], min_length=1, max_length=255)
        if not is_valid:
            return False, f"Invalid name: {error}"

    is_valid, error = _check_contact_fields(data)
    if not is_valid:
        return False, error

    return _check_choice(data, 'contact_type', CONTACT_TYPES)


def validate_trade_partner(data: Dict[str, Any], partial: bool = False) -> Tuple[bool, Optional[str]]:
    """Validate a trade partner payload"""
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object"

    if not partial or 'business_name' in data:
        is_valid, error = validate_required_fields(data, ['business_name'])
        if not is_valid:
            return False, error

    is_valid, error = _check_contact_fields(data)
    if not is_valid:
        return False, error

    is_valid, error = _check_choice(data, 'commission_type', COMMISSION_TYPES)
    if not is_valid:
        return False, error

    if data.get('commission_value') is not None:
        max_value = 100 if data.get('commission_type') == 'percentage' else None
        is_valid, error = validate_number_range(data['commission_value'], min_value=0, max_value=max_value)
        if not is_valid:
            return False, f"Invalid commission_value: {error}"

    if data.get('payment_terms_days') is not None:
        is_valid, error = validate_number_range(data['payment_terms_days'], min_value=0, max_value=365)
        if not is_valid:
            return False, f"Invalid payment_terms_days: {error}"

    return True, None


def validate_category(data: Dict[str, Any], partial: bool = False) -> Tuple[bool, Optional[str]]:
    """Validate a product category payload"""
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object"

    if not partial or 'name' in data:
        is_valid, error = validate_required_fields(data, ['name'])
        if not is_valid:
            return False, error
        is_valid, error = validate_string_length(data['name'], min_length=1, max_length=255)
        if not is_valid:
            return False, f"Invalid name: {error}"

    return True, None


def validate_catalog_item(data: Dict[str, Any], partial: bool = False) -> Tuple[bool, Optional[str]]:
    """Validate a catalog item payload"""
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object"

    if not partial or 'name' in data:
        is_valid, error = validate_required_fields(data, ['name'])
        if not is_valid:
            return False, error

    for field, choices in (('type', CATALOG_ITEM_TYPES), ('unit_of_measure', UNITS_OF_MEASURE)):
        is_valid, error = _check_choice(data, field, choices)
        if not is_valid:
            return False, error

    for field in ('unit_price', 'default_quantity'):
        if data.get(field) is not None:
            is_valid, error = validate_number_range(data[field], min_value=0)
            if not is_valid:
                return False, f"Invalid {field}: {error}"

    return True, None


def validate_quote_item(data: Dict[str, Any], partial: bool = False) -> Tuple[bool, Optional[str]]:
    """
    Validate a quote item payload

    Quantity must be strictly positive with at most 2 decimal places, the
    precision it is stored at. Unit price may be zero (e.g. a free-of-charge
    line).
    """
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object"

    if not partial or 'description' in data:
        is_valid, error = validate_required_fields(data, ['description'])
        if not is_valid:
            return False, error

    is_valid, error = _check_choice(data, 'item_type', QUOTE_ITEM_TYPES)
    if not is_valid:
        return False, error

    if not partial or 'quantity' in data:
        is_valid, error = validate_number_range(data.get('quantity', 1), min_value=0, exclusive_min=True)
        if is_valid:
            is_valid, error = validate_decimal_places(data.get('quantity', 1))
        if not is_valid:
            return False, f"Invalid quantity: {error}"

    if not partial or 'unit_price' in data:
        is_valid, error = validate_number_range(data.get('unit_price', 0), min_value=0)
        if not is_valid:
            return False, f"Invalid unit_price: {error}"

    return True, None


def validate_job(data: Dict[str, Any], partial: bool = False) -> Tuple[bool, Optional[str]]:
    """Validate a job payload"""
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object"

    if not partial or 'title' in data:
        is_valid, error = validate_required_fields(data, ['title'])
        if not is_valid:
            return False, error
        is_valid, error = validate_string_length(data['title'], min_length=1, max_length=255)
        if not is_valid:
            return False, f"Invalid title: {error}"

    for field, choices in (('discount_type', DISCOUNT_TYPES), ('quote_response', QUOTE_RESPONSES)):
        is_valid, error = _check_choice(data, field, choices)
        if not is_valid:
            return False, error

    if data.get('discount_value') is not None:
        max_value = 100 if data.get('discount_type') == 'percentage' else None
        is_valid, error = validate_number_range(data['discount_value'], min_value=0, max_value=max_value)
        if not is_valid:
            return False, f"Invalid discount_value: {error}"

    if data.get('tax_rate') is not None:
        is_valid, error = validate_number_range(data['tax_rate'], min_value=0, max_value=100)
        if not is_valid:
            return False, f"Invalid tax_rate: {error}"

    if data.get('deposit_amount') is not None:
        is_valid, error = validate_number_range(data['deposit_amount'], min_value=0)
        if not is_valid:
            return False, f"Invalid deposit_amount: {error}"

    return True, None


def validate_payment(data: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """Validate a payment payload (client or partner)"""
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object"

    is_valid, error = validate_required_fields(data, ['amount'])
    if not is_valid:
        return False, error

    is_valid, error = validate_number_range(data['amount'], min_value=0, exclusive_min=True)
    if not is_valid:
        return False, f"Invalid amount: {error}"

    return True, None


def validate_note(data: Dict[str, Any], partial: bool = False) -> Tuple[bool, Optional[str]]:
    """Validate a job note payload"""
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object"

    if not partial or 'content' in data:
        is_valid, error = validate_required_fields(data, ['content'])
        if not is_valid:
            return False, error
        is_valid, error = validate_string_length(data['content'], min_length=1, max_length=10000)
        if not is_valid:
            return False, f"Invalid content: {error}"

    return _check_choice(data, 'visibility', NOTE_VISIBILITY)


def validate_personal_task(data: Dict[str, Any], partial: bool = False) -> Tuple[bool, Optional[str]]:
    """Validate a personal task payload"""
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object"

    if not partial or 'title' in data:
        is_valid, error = validate_required_fields(data, ['title'])
        if not is_valid:
            return False, error

    is_valid, error = _check_choice(data, 'task_type', PERSONAL_TASK_TYPES)
    if not is_valid:
        return False, error

    if data.get('due_time'):
        is_valid, error = validate_time_of_day(data['due_time'])
        if not is_valid:
            return False, f"Invalid due_time: {error}"

    if data.get('reminder_minutes_before') is not None:
        is_valid, error = validate_number_range(data['reminder_minutes_before'], min_value=0)
        if not is_valid:
            return False, f"Invalid reminder_minutes_before: {error}"

    return True, None


def validate_daily_focus(data: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """Validate a daily focus task payload (priority 1 to 3)"""
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object"

    is_valid, error = validate_required_fields(data, ['title'])
    if not is_valid:
        return False, error

    priority = data.get('priority', 1)
    if isinstance(priority, bool) or not isinstance(priority, int) or priority not in (1, 2, 3):
        return False, "Invalid priority: must be 1, 2 or 3"

    return True, None


def validate_content_post(data: Dict[str, Any], partial: bool = False) -> Tuple[bool, Optional[str]]:
    """Validate an SEO content post payload"""
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object"

    if not partial:
        is_valid, error = validate_required_fields(data, ['platform', 'content'])
        if not is_valid:
            return False, error

    for field, choices in (('platform', SEO_PLATFORMS), ('status', SEO_POST_STATUSES)):
        is_valid, error = _check_choice(data, field, choices)
        if not is_valid:
            return False, error

    return True, None


def validate_business_profile(data: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """Validate the SEO business profile payload"""
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object"

    if data.get('contact_email'):
        is_valid, error = validate_email(data['contact_email'])
        if not is_valid:
            return False, f"Invalid contact_email: {error}"

    if data.get('website_url'):
        is_valid, error = validate_url(data['website_url'])
        if not is_valid:
            return False, f"Invalid website_url: {error}"

    for field in ('services_offered', 'service_locations', 'primary_goals'):
        if field in data and not isinstance(data[field], list):
            return False, f"{field} must be an array"

    return True, None


def _check_minutes(data: Dict[str, Any], fields) -> Tuple[bool, Optional[str]]:
    for field in fields:
        if data.get(field) is not None:
            is_valid, error = validate_number_range(data[field], min_value=1)
            if not is_valid:
                return False, f"Invalid {field}: {error}"
    return True, None


def validate_wellbeing_settings(data: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """Validate owner reminder settings"""
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object"

    if data.get('work_cutoff_time') is not None:
        is_valid, error = validate_time_of_day(data['work_cutoff_time'])
        if not is_valid:
            return False, f"Invalid work_cutoff_time: {error}"

    return _check_minutes(data, ('water_reminder_interval_minutes', 'stretch_reminder_interval_minutes',
                                 'session_warning_minutes'))


def validate_autopilot_settings(data: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """Validate autopilot schedule and content mix"""
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object"

    for platform in ('facebook', 'instagram', 'google'):
        time_value = data.get(f'{platform}_preferred_time')
        if time_value is not None:
            is_valid, error = validate_time_of_day(time_value)
            if not is_valid:
                return False, f"Invalid {platform}_preferred_time: {error}"
        days = data.get(f'{platform}_preferred_days')
        if days is not None:
            if not isinstance(days, list) or any(day not in WEEKDAYS for day in days):
                return False, f"{platform}_preferred_days must be a list of weekday names"

    for field in ('project_showcase_weight', 'before_after_weight', 'tips_weight',
                  'testimonial_weight', 'seasonal_weight'):
        if data.get(field) is not None:
            is_valid, error = validate_number_range(data[field], min_value=0, max_value=100)
            if not is_valid:
                return False, f"Invalid {field}: {error}"

    return _check_minutes(data, ('auto_generate_ahead',))


def format_validation_error(field: str, message: str) -> Dict[str, Any]:
    """Format validation error for consistent API responses"""
    return {
        'success': False,
        'error': message,
        'field': field
    }


def require_valid(result: Tuple[bool, Optional[str]], field: Optional[str] = None):
    """
    Raise ValidationError for a failed (is_valid, error) validator result

    Usage:
        require_valid(validate_contact(data))
    """
    is_valid, error = result
    if not is_valid:
        raise ValidationError(error, field)
