from cores.exceptions import InvalidRequest, ResourceNotFound, StateConflict, TemporalViolation


class AlreadyCompleted(StateConflict):
    default_detail = 'You have already completed this test.'
    default_code = 'already_completed'


class AttemptNotFound(ResourceNotFound):
    default_detail = 'Not started.'
    default_code = 'attempt_not_found'


class ExamExpired(TemporalViolation):
    default_detail = 'Exam time has expired.'
    default_code = 'exam_expired'


class EmptyAnswer(InvalidRequest):
    default_detail = 'Answer text is required.'
    default_code = 'empty_answer'


class MissingExamStart(InvalidRequest):
    default_detail = 'exam_start_time is required when no exam session exists yet.'
    default_code = 'missing_exam_start'


class InvalidExamStart(InvalidRequest):
    default_detail = 'exam_start_time cannot be in the future.'
    default_code = 'invalid_exam_start'


class InvalidMark(InvalidRequest):
    default_detail = 'mark must be a non-negative number.'
    default_code = 'invalid_mark'


class MarkAlreadySet(StateConflict):
    default_detail = 'Mark already exists. Use edit endpoint to update.'
    default_code = 'mark_already_set'


class NoMarkToEdit(StateConflict):
    default_detail = 'No mark found. Use add endpoint to create a new mark.'
    default_code = 'no_mark_to_edit'


class AnswerNotFound(ResourceNotFound):
    default_detail = 'Answer not found.'
    default_code = 'answer_not_found'
