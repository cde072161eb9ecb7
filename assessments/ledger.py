"""
Answer ledger: one live row per (student, question, domain, section).

Resubmitting rewrites the text in place and never touches ``mark``;
marks only change through ``add_mark`` / ``edit_mark``, which are
conditional updates so two graders cannot silently overwrite each other.
"""
import logging
import re
from datetime import timedelta
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.utils import timezone

from cores.exceptions import InvalidRequest
from exams import clock
from exams.exceptions import DomainNotFound, InvalidSection, QuestionNotFound, TestNotFound
from exams.models import Domain, Question, Test

from . import storage
from .exceptions import (
    AnswerNotFound, EmptyAnswer, ExamExpired, InvalidExamStart, InvalidMark,
    MarkAlreadySet, MissingExamStart, NoMarkToEdit,
)
from .models import Answer, Attempt

logger = logging.getLogger(__name__)


def _lookup(model, pk, error):
    if pk in (None, ''):
        raise error()
    try:
        return model.objects.get(pk=pk)
    except (model.DoesNotExist, ValueError, TypeError):
        raise error()


def _fallback_window(start):
    return start, start + timedelta(minutes=settings.EXAM_ANSWER_WINDOW_MINUTES)


def governing_attempt(student, domain, section, test=None):
    """
    The started attempt whose due time bounds answers for this key.

    With ``test`` it is the student's attempt at that test; without one it
    is their latest attempt that selected this domain and section.
    """
    started = Attempt.objects.filter(
        student=student, start_time__isnull=False, due_time__isnull=False,
    ).select_related('test')
    if test is not None:
        return started.filter(test=test).first()
    return (
        started.filter(selected_domain=domain, selected_section=section)
        .order_by('-start_time')
        .first()
    )


def governing_window(student, domain, section, attempt=None, existing=None, exam_start_time=None):
    """
    The (start, end) window answers for this key must fall into.

    Precedence: the governing attempt; else the window stored on the answer
    being rewritten; else the window of the student's earlier answers in the
    same domain and section; else a fresh fixed-length window from
    ``exam_start_time``.
    """
    if attempt is not None:
        return attempt.answer_window()

    if existing is not None:
        return existing.exam_start_time, existing.exam_end_time

    earlier = (
        Answer.objects.filter(student=student, domain=domain, section=section)
        .order_by('exam_start_time')
        .first()
    )
    if earlier is not None:
        return earlier.exam_start_time, earlier.exam_end_time

    if exam_start_time is None:
        raise MissingExamStart()
    return _fallback_window(exam_start_time)


def open_exam_window(student, domain_id, section, test_id=None, now=None):
    """
    Return the answer window for a student about to work on a domain/section.

    A brand new window is not persisted; the first submitted answer stores it.
    """
    now = now or clock.now()
    domain = _lookup(Domain, domain_id, DomainNotFound)
    test = _lookup(Test, test_id, TestNotFound) if test_id else None
    attempt = governing_attempt(student, domain, section, test=test)

    try:
        start, end = governing_window(student, domain, section, attempt=attempt)
        is_new = False
    except MissingExamStart:
        start, end = _fallback_window(now)
        is_new = True

    if now > end:
        raise ExamExpired()

    return {
        'exam_start_time': start,
        'exam_end_time': end,
        'time_remaining_seconds': max(0, int((end - now).total_seconds())),
        'is_new': is_new,
    }


def exam_status(student, domain_id, section, now=None):
    now = now or clock.now()
    earlier = (
        Answer.objects.filter(student=student, domain_id=domain_id, section=section)
        .order_by('exam_start_time')
        .first()
    )
    if earlier is None:
        return {'has_started': False}
    return {
        'has_started': True,
        'exam_start_time': earlier.exam_start_time,
        'exam_end_time': earlier.exam_end_time,
        'time_remaining_seconds': max(0, int((earlier.exam_end_time - now).total_seconds())),
        'has_expired': now > earlier.exam_end_time,
    }


def submit_answer(student, question_id, domain_id, section, text, test_id=None,
                  exam_start_time=None, image_url='', image_public_id='', now=None):
    """
    Upsert the student's answer; returns ``(answer, created)``.

    A rewritten answer stays bound to the test it was first given for, and
    that test's attempt keeps governing it whatever the request names.
    """
    now = now or clock.now()

    question = _lookup(Question, question_id, QuestionNotFound)
    domain = _lookup(Domain, domain_id, DomainNotFound)
    test = _lookup(Test, test_id, TestNotFound) if test_id else None
    if section not in settings.EXAM_SECTIONS:
        raise InvalidSection()
    if exam_start_time is not None and exam_start_time > now:
        raise InvalidExamStart()

    existing = (
        Answer.objects.filter(student=student, question=question, domain=domain, section=section)
        .select_related('test')
        .first()
    )
    if existing is not None and existing.test_id:
        test = existing.test

    attempt = governing_attempt(student, domain, section, test=test)
    if test is None and attempt is not None:
        test = attempt.test

    start, end = governing_window(
        student, domain, section, attempt=attempt, existing=existing, exam_start_time=exam_start_time,
    )
    if now > end:
        raise ExamExpired()

    text = (text or '').strip()
    if not text:
        raise EmptyAnswer()

    defaults = {
        'text': text,
        'test': test,
        'exam_start_time': start,
        'exam_end_time': end,
        'submitted_at': now,
        'is_submitted': True,
    }
    if image_url:
        defaults['image_url'] = image_url
    if image_public_id:
        defaults['image_public_id'] = image_public_id

    answer, created = Answer.objects.update_or_create(
        student=student, question=question, domain=domain, section=section,
        defaults=defaults,
    )
    logger.info("Answer %s %s: student=%s question=%s",
                answer.pk, "created" if created else "updated", student.pk, question.pk)
    return answer, created


def _coerce_mark(mark):
    if mark is None or isinstance(mark, bool):
        raise InvalidMark()
    try:
        value = Decimal(str(mark))
    except (InvalidOperation, ValueError):
        raise InvalidMark()
    if not value.is_finite() or value < 0:
        raise InvalidMark()
    return value


def add_mark(answer_id, mark):
    answer = _lookup(Answer, answer_id, AnswerNotFound)
    if answer.mark is not None:
        raise MarkAlreadySet()
    value = _coerce_mark(mark)

    updated = Answer.objects.filter(pk=answer.pk, mark__isnull=True).update(
        mark=value, mark_submitted=True, updated_at=timezone.now(),
    )
    if not updated:
        raise MarkAlreadySet()

    answer.refresh_from_db()
    logger.info("Mark %s added to answer %s", value, answer.pk)
    return answer


def edit_mark(answer_id, mark):
    answer = _lookup(Answer, answer_id, AnswerNotFound)
    if answer.mark is None:
        raise NoMarkToEdit()
    value = _coerce_mark(mark)

    updated = Answer.objects.filter(pk=answer.pk, mark__isnull=False).update(
        mark=value, updated_at=timezone.now(),
    )
    if not updated:
        raise NoMarkToEdit()

    answer.refresh_from_db()
    logger.info("Mark on answer %s changed to %s", answer.pk, value)
    return answer


def remove_image_reference(answer_id, image_url, store=None):
    """
    Strip one ``<img src="image_url">`` from the answer text and drop the
    hosted copy. The text edit is saved first; remote cleanup may fail.
    """
    if not image_url:
        raise InvalidRequest('Image URL is required.')
    answer = _lookup(Answer, answer_id, AnswerNotFound)

    changed = []
    if image_url in answer.text:
        tag = re.compile(r'<img[^>]*src="%s"[^>]*>' % re.escape(image_url))
        text = tag.sub('', answer.text, count=1)
        answer.text = re.sub(r'\n{3,}', '\n\n', text)
        changed.append('text')

    public_id = None
    if answer.image_url == image_url:
        public_id = answer.image_public_id or None
        answer.image_url = ''
        answer.image_public_id = ''
        changed += ['image_url', 'image_public_id']

    if changed:
        answer.save(update_fields=changed + ['updated_at'])

    public_id = public_id or storage.public_id_from_url(image_url)
    if public_id is None:
        logger.warning("Image %s is not hosted by the blob store; skipped remote cleanup", image_url)
    else:
        storage.destroy_quietly(public_id, store=store)
    return answer


def delete_answer(answer_id, store=None):
    answer = _lookup(Answer, answer_id, AnswerNotFound)
    public_id = answer.image_public_id
    answer.delete()
    logger.info("Answer %s deleted", answer_id)
    storage.destroy_quietly(public_id, store=store)
