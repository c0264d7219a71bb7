"""
Tests for input validation utilities
"""
import pytest
from io import BytesIO
from werkzeug.datastructures import FileStorage
from validators import (
    validate_required_fields,
    validate_email,
    validate_phone,
    validate_url,
    validate_time_of_day,
    validate_string_length,
    validate_number_range,
    sanitize_string,
    sanitize_filename,
    validate_file_extension,
    validate_attachment_upload,
    validate_contact,
    validate_trade_partner,
    validate_catalog_item,
    validate_quote_item,
    validate_job,
    validate_payment,
    validate_note,
    validate_personal_task,
    validate_daily_focus,
    validate_content_post,
    validate_business_profile,
    validate_wellbeing_settings,
    validate_autopilot_settings,
    require_valid,
    format_validation_error,
    ValidationError,
    ALLOWED_IMAGE_EXTENSIONS,
    ALLOWED_DOCUMENT_EXTENSIONS
)


@pytest.mark.unit
class TestRequiredFields:
    """Tests for required fields validation"""

    def test_validate_all_fields_present(self):
        """Test validation passes when all fields present"""
        data = {'name': 'John', 'email': 'john@example.com'}
        is_valid, error = validate_required_fields(data, ['name', 'email'])
        assert is_valid is True
        assert error is None

    def test_validate_missing_field(self):
        """Test validation fails when field missing"""
        data = {'name': 'John'}
        is_valid, error = validate_required_fields(data, ['name', 'email'])
        assert is_valid is False
        assert 'email' in error

    def test_validate_empty_field(self):
        """Test validation fails when field is empty string"""
        data = {'name': 'John', 'email': ''}
        is_valid, error = validate_required_fields(data, ['name', 'email'])
        assert is_valid is False

    def test_validate_none_field(self):
        """Test validation fails when field is None"""
        data = {'name': 'John', 'email': None}
        is_valid, error = validate_required_fields(data, ['name', 'email'])
        assert is_valid is False


@pytest.mark.unit
class TestEmailValidation:
    """Tests for email validation"""

    def test_valid_email(self):
        """Test valid email passes"""
        is_valid, error = validate_email('test@example.com')
        assert is_valid is True
        assert error is None

    def test_valid_email_with_subdomain(self):
        """Test valid email with subdomain passes"""
        is_valid, error = validate_email('user@mail.example.com')
        assert is_valid is True

    def test_invalid_email_no_at(self):
        """Test invalid email without @ fails"""
        is_valid, error = validate_email('invalidemail.com')
        assert is_valid is False

    def test_invalid_email_no_domain(self):
        """Test invalid email without domain fails"""
        is_valid, error = validate_email('test@')
        assert is_valid is False

    def test_invalid_email_too_long(self):
        """Test email that's too long fails"""
        long_email = 'a' * 250 + '@example.com'
        is_valid, error = validate_email(long_email)
        assert is_valid is False

    def test_empty_email(self):
        """Test empty email fails"""
        is_valid, error = validate_email('')
        assert is_valid is False


@pytest.mark.unit
class TestPhoneValidation:
    """Tests for phone number validation"""

    def test_valid_phone_with_country_code(self):
        """Test valid phone with country code passes"""
        is_valid, error = validate_phone('+1234567890')
        assert is_valid is True

    def test_valid_phone_without_country_code(self):
        """Test valid phone without country code passes"""
        is_valid, error = validate_phone('1234567890')
        assert is_valid is True

    def test_valid_phone_with_formatting(self):
        """Test valid phone with formatting passes"""
        is_valid, error = validate_phone('(123) 456-7890')
        assert is_valid is True

    def test_invalid_phone_too_short(self):
        """Test phone that's too short fails"""
        is_valid, error = validate_phone('12345')
        assert is_valid is False

    def test_invalid_phone_letters(self):
        """Test phone with letters fails"""
        is_valid, error = validate_phone('123-ABC-7890')
        assert is_valid is False


@pytest.mark.unit
class TestURLValidation:
    """Tests for URL validation"""

    def test_valid_http_url(self):
        """Test valid HTTP URL passes"""
        is_valid, error = validate_url('http://example.com')
        assert is_valid is True

    def test_valid_https_url(self):
        """Test valid HTTPS URL passes"""
        is_valid, error = validate_url('https://example.com')
        assert is_valid is True

    def test_valid_url_with_path(self):
        """Test valid URL with path passes"""
        is_valid, error = validate_url('https://example.com/path/to/page')
        assert is_valid is True

    def test_invalid_url_no_protocol(self):
        """Test URL without protocol fails"""
        is_valid, error = validate_url('example.com')
        assert is_valid is False

    def test_invalid_url_too_long(self):
        """Test URL that's too long fails"""
        long_url = 'https://example.com/' + 'a' * 2100
        is_valid, error = validate_url(long_url)
        assert is_valid is False


@pytest.mark.unit
class TestStringValidation:
    """Tests for string length validation"""

    def test_valid_string_length(self):
        """Test string within length limits passes"""
        is_valid, error = validate_string_length('test', min_length=1, max_length=10)
        assert is_valid is True

    def test_string_too_short(self):
        """Test string below minimum fails"""
        is_valid, error = validate_string_length('a', min_length=5)
        assert is_valid is False

    def test_string_too_long(self):
        """Test string above maximum fails"""
        is_valid, error = validate_string_length('a' * 100, max_length=50)
        assert is_valid is False

    def test_non_string_value(self):
        """Test non-string value fails"""
        is_valid, error = validate_string_length(123)
        assert is_valid is False


@pytest.mark.unit
class TestNumberValidation:
    """Tests for number range validation"""

    def test_valid_number_in_range(self):
        """Test number within range passes"""
        is_valid, error = validate_number_range(5, min_value=0, max_value=10)
        assert is_valid is True

    def test_number_below_minimum(self):
        """Test number below minimum fails"""
        is_valid, error = validate_number_range(-5, min_value=0)
        assert is_valid is False

    def test_number_above_maximum(self):
        """Test number above maximum fails"""
        is_valid, error = validate_number_range(15, max_value=10)
        assert is_valid is False

    def test_non_number_value(self):
        """Test non-number value fails"""
        is_valid, error = validate_number_range('not a number')
        assert is_valid is False


@pytest.mark.unit
class TestStringsanitization:
    """Tests for string sanitization"""

    def test_sanitize_removes_null_bytes(self):
        """Test sanitization removes null bytes"""
        result = sanitize_string('test\x00string')
        assert '\x00' not in result

    def test_sanitize_trims_whitespace(self):
        """Test sanitization trims whitespace"""
        result = sanitize_string('  test  ')
        assert result == 'test'

    def test_sanitize_limits_length(self):
        """Test sanitization limits length"""
        result = sanitize_string('a' * 2000, max_length=100)
        assert len(result) == 100

    def test_sanitize_handles_non_string(self):
        """Test sanitization handles non-string input"""
        result = sanitize_string(123)
        assert result == '123'


@pytest.mark.unit
class TestFilenameSanitization:
    """Tests for filename sanitization"""

    def test_sanitize_normal_filename(self):
        """Test normal filename is preserved"""
        result = sanitize_filename('document.pdf')
        assert result == 'document.pdf'

    def test_sanitize_removes_path_traversal(self):
        """Test path traversal is removed"""
        result = sanitize_filename('../../../etc/passwd')
        assert '..' not in result
        assert '/' not in result

    def test_sanitize_removes_special_chars(self):
        """Test special characters are removed"""
        result = sanitize_filename('file<>:"|?*.txt')
        assert '<' not in result
        assert '>' not in result

    def test_sanitize_empty_filename(self):
        """Test empty filename gets default name"""
        result = sanitize_filename('')
        assert result == 'file'


@pytest.mark.unit
class TestFileExtensionValidation:
    """Tests for file extension validation"""

    def test_valid_image_extension(self):
        """Test valid image extension passes"""
        is_valid, error = validate_file_extension('photo.jpg', ALLOWED_IMAGE_EXTENSIONS)
        assert is_valid is True

    def test_valid_document_extension(self):
        """Test valid document extension passes"""
        is_valid, error = validate_file_extension('doc.pdf', ALLOWED_DOCUMENT_EXTENSIONS)
        assert is_valid is True

    def test_invalid_extension(self):
        """Test invalid extension fails"""
        is_valid, error = validate_file_extension('malware.exe', ALLOWED_IMAGE_EXTENSIONS)
        assert is_valid is False

    def test_no_extension(self):
        """Test file without extension fails"""
        is_valid, error = validate_file_extension('noextension', ALLOWED_IMAGE_EXTENSIONS)
        assert is_valid is False

    def test_case_insensitive(self):
        """Test extension check is case-insensitive"""
        is_valid, error = validate_file_extension('PHOTO.JPG', ALLOWED_IMAGE_EXTENSIONS)
        assert is_valid is True




@pytest.mark.unit
class TestAttachmentUpload:
    """Tests for note attachment validation"""

    def test_valid_attachment(self):
        """Test a small image is accepted and its name sanitised"""
        file = FileStorage(stream=BytesIO(b'fake image bytes'), filename='site photo.jpg')
        is_valid, error, filename = validate_attachment_upload(file)
        assert is_valid is True
        assert filename == 'site_photo.jpg'

    def test_empty_attachment(self):
        """Test an empty file is rejected"""
        file = FileStorage(stream=BytesIO(b''), filename='empty.pdf')
        is_valid, error, filename = validate_attachment_upload(file)
        assert is_valid is False
        assert 'empty' in error

    def test_disallowed_attachment_type(self):
        """Test an executable is rejected"""
        file = FileStorage(stream=BytesIO(b'MZ'), filename='invoice.exe')
        is_valid, error, filename = validate_attachment_upload(file)
        assert is_valid is False
        assert filename is None


@pytest.mark.unit
class TestTimeOfDay:
    """Tests for HH:MM validation"""

    def test_valid_times(self):
        """Test 24-hour times pass"""
        assert validate_time_of_day('07:30')[0] is True
        assert validate_time_of_day('23:59')[0] is True

    def test_invalid_times(self):
        """Test malformed times fail"""
        assert validate_time_of_day('24:00')[0] is False
        assert validate_time_of_day('7:30')[0] is False
        assert validate_time_of_day(None)[0] is False


@pytest.mark.unit
class TestContactAndPartnerValidation:
    """Tests for contact and trade partner payloads"""

    def test_valid_contact(self):
        """Test a complete contact passes"""
        data = {'name': 'Jane Client', 'email': 'jane@example.com', 'contact_type': 'client'}
        assert validate_contact(data) == (True, None)

    def test_contact_requires_name(self):
        """Test a contact without a name fails"""
        is_valid, error = validate_contact({'email': 'jane@example.com'})
        assert is_valid is False
        assert 'name' in error

    def test_partial_contact_update_skips_name(self):
        """Test partial updates only check supplied fields"""
        assert validate_contact({'phone': '029 2000 0000'}, partial=True)[0] is True

    def test_contact_rejects_bad_type(self):
        """Test an unknown contact_type fails"""
        is_valid, error = validate_contact({'name': 'X', 'contact_type': 'alien'})
        assert is_valid is False
        assert 'contact_type' in error

    def test_contact_rejects_bad_email(self):
        """Test an invalid email fails"""
        is_valid, error = validate_contact({'name': 'X', 'email': 'nope'})
        assert is_valid is False

    def test_non_dict_body(self):
        """Test a non-object body fails"""
        assert validate_contact(['not', 'a', 'dict'])[0] is False

    def test_percentage_commission_capped(self):
        """Test percentage commission above 100 fails"""
        data = {'business_name': 'Pipes Ltd', 'commission_type': 'percentage', 'commission_value': 120}
        assert validate_trade_partner(data)[0] is False

    def test_fixed_commission_not_capped(self):
        """Test fixed commission may exceed 100"""
        data = {'business_name': 'Pipes Ltd', 'commission_type': 'fixed', 'commission_value': 250}
        assert validate_trade_partner(data)[0] is True


@pytest.mark.unit
class TestQuoteAndJobValidation:
    """Tests for catalog, quote item, job and payment payloads"""

    def test_catalog_item_type(self):
        """Test catalog item types are checked"""
        assert validate_catalog_item({'name': 'Fan', 'type': 'product'})[0] is True
        assert validate_catalog_item({'name': 'Fan', 'type': 'spaceship'})[0] is False

    def test_catalog_item_negative_price(self):
        """Test negative prices fail"""
        assert validate_catalog_item({'name': 'Fan', 'unit_price': -1})[0] is False

    def test_quote_item_requires_positive_quantity(self):
        """Test zero quantity fails"""
        is_valid, error = validate_quote_item({'description': 'Labour', 'quantity': 0, 'unit_price': 40})
        assert is_valid is False
        assert 'quantity' in error

    @pytest.mark.parametrize('quantity', ['0.333', 0.001, 2.005])
    def test_quote_item_rejects_extra_decimal_places(self, quantity):
        """Test quantities finer than pennies fail, including ones that round to zero"""
        is_valid, error = validate_quote_item({'description': 'Cable', 'quantity': quantity, 'unit_price': 3})
        assert is_valid is False
        assert 'decimal places' in error

    def test_quote_item_allows_two_decimal_places(self):
        """Test quantities at the stored precision pass"""
        assert validate_quote_item({'description': 'Cable', 'quantity': '0.330', 'unit_price': 3})[0] is True
        assert validate_quote_item({'description': 'Cable', 'quantity': 2.5, 'unit_price': 3})[0] is True

    def test_quote_item_allows_zero_price(self):
        """Test a free line passes"""
        assert validate_quote_item({'description': 'Free survey', 'quantity': 1, 'unit_price': 0})[0] is True

    def test_quote_item_rejects_negative_price(self):
        """Test negative unit price fails"""
        assert validate_quote_item({'description': 'Refund', 'quantity': 1, 'unit_price': -5})[0] is False

    def test_job_requires_title(self):
        """Test a job without a title fails"""
        assert validate_job({'address': '1 High Street'})[0] is False

    def test_job_percentage_discount_capped(self):
        """Test a percentage discount above 100 fails"""
        assert validate_job({'title': 'Loft', 'discount_type': 'percentage', 'discount_value': 101})[0] is False

    def test_job_rejects_bad_quote_response(self):
        """Test an unknown quote_response fails"""
        assert validate_job({'title': 'Loft', 'quote_response': 'maybe'})[0] is False

    def test_payment_amount_must_be_positive(self):
        """Test zero and negative payments fail"""
        assert validate_payment({'amount': 0})[0] is False
        assert validate_payment({'amount': -10})[0] is False
        assert validate_payment({'amount': '25.50'})[0] is True

    def test_note_visibility(self):
        """Test note visibility values"""
        assert validate_note({'content': 'Left key with neighbour', 'visibility': 'partner'})[0] is True
        assert validate_note({'content': 'Secret', 'visibility': 'public'})[0] is False


@pytest.mark.unit
class TestOwnerToolValidation:
    """Tests for wellbeing and SEO payloads"""

    def test_personal_task_due_time(self):
        """Test due_time must be HH:MM"""
        assert validate_personal_task({'title': 'Dentist', 'due_time': '14:15'})[0] is True
        assert validate_personal_task({'title': 'Dentist', 'due_time': '2pm'})[0] is False

    def test_personal_task_type(self):
        """Test task_type choices"""
        assert validate_personal_task({'title': 'Stretch', 'task_type': 'morning_routine'})[0] is True
        assert validate_personal_task({'title': 'Stretch', 'task_type': 'chore'})[0] is False

    @pytest.mark.parametrize('priority', [1, 2, 3])
    def test_daily_focus_valid_priorities(self, priority):
        """Test priorities 1 to 3 pass"""
        assert validate_daily_focus({'title': 'Send quotes', 'priority': priority})[0] is True

    @pytest.mark.parametrize('priority', [0, 4, '1', True])
    def test_daily_focus_invalid_priorities(self, priority):
        """Test out-of-range and non-integer priorities fail"""
        assert validate_daily_focus({'title': 'Send quotes', 'priority': priority})[0] is False

    def test_content_post_platform(self):
        """Test content post platforms"""
        assert validate_content_post({'platform': 'instagram', 'content': 'Hello'})[0] is True
        assert validate_content_post({'platform': 'myspace', 'content': 'Hello'})[0] is False

    def test_business_profile_lists(self):
        """Test list fields must be arrays"""
        assert validate_business_profile({'services_offered': ['Kitchens']})[0] is True
        assert validate_business_profile({'services_offered': 'Kitchens'})[0] is False

    def test_wellbeing_settings(self):
        """Test cutoff times and reminder intervals"""
        assert validate_wellbeing_settings({'work_cutoff_time': '17:45', 'session_warning_minutes': 90})[0] is True
        assert validate_wellbeing_settings({'work_cutoff_time': '5pm'})[0] is False
        assert validate_wellbeing_settings({'water_reminder_interval_minutes': 0})[0] is False

    def test_autopilot_settings(self):
        """Test preferred times, days and content weights"""
        assert validate_autopilot_settings({
            'facebook_preferred_time': '08:15', 'google_preferred_days': ['monday', 'thursday'],
            'tips_weight': 40, 'auto_generate_ahead': 7
        })[0] is True
        assert validate_autopilot_settings({'instagram_preferred_time': '25:00'})[0] is False
        assert validate_autopilot_settings({'facebook_preferred_days': ['funday']})[0] is False
        assert validate_autopilot_settings({'facebook_preferred_days': 'monday'})[0] is False
        assert validate_autopilot_settings({'seasonal_weight': 150})[0] is False
        assert validate_autopilot_settings({'auto_generate_ahead': 0})[0] is False


@pytest.mark.unit
class TestErrorHelpers:
    """Tests for require_valid and format_validation_error"""

    def test_require_valid_raises(self):
        """Test a failed result raises ValidationError"""
        with pytest.raises(ValidationError) as exc_info:
            require_valid((False, 'Bad thing'), field='name')
        assert exc_info.value.message == 'Bad thing'
        assert exc_info.value.field == 'name'

    def test_require_valid_passes(self):
        """Test a passing result does nothing"""
        require_valid((True, None))

    def test_format_validation_error(self):
        """Test the error response shape"""
        assert format_validation_error('email', 'Invalid') == {
            'success': False, 'error': 'Invalid', 'field': 'email'
        }
