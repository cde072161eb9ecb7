from cores.exceptions import InvalidRequest, ResourceNotFound, StateConflict, TemporalViolation
from rest_framework.exceptions import PermissionDenied


class DuplicateTitle(StateConflict):
    default_detail = 'This test name is already used. Please choose another name.'
    default_code = 'duplicate_title'


class InvalidWindow(InvalidRequest):
    default_detail = 'A test needs at least one domain and an end after its start.'
    default_code = 'invalid_window'


class InvalidDomainReference(InvalidRequest):
    default_detail = 'One or more invalid domain IDs.'
    default_code = 'invalid_domain_reference'


class InvalidEligibility(InvalidRequest):
    default_detail = 'Eligible students must be existing student accounts.'
    default_code = 'invalid_eligibility'


class InvalidSection(InvalidRequest):
    default_detail = 'Invalid section.'
    default_code = 'invalid_section'


class DomainNotInTest(InvalidRequest):
    default_detail = 'Domain not in this test.'
    default_code = 'domain_not_in_test'


class TestNotActive(TemporalViolation):
    default_detail = 'Test is not active.'
    default_code = 'test_not_active'


class NotEligible(PermissionDenied):
    default_detail = 'You are not eligible for this test.'
    default_code = 'not_eligible'


class TestNotFound(ResourceNotFound):
    default_detail = 'Test not found.'
    default_code = 'test_not_found'


class DomainNotFound(ResourceNotFound):
    default_detail = 'Domain not found.'
    default_code = 'domain_not_found'


class QuestionNotFound(ResourceNotFound):
    default_detail = 'Question not found.'
    default_code = 'question_not_found'
