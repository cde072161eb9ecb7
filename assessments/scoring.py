"""Mark aggregation over the answer ledger."""
import logging
from decimal import Decimal

from django.db.models import Sum
from django.utils import timezone

from .models import Answer, Attempt

logger = logging.getLogger(__name__)


def compute_total(student_id, domain_id, test_id=None):
    """
    Sum the marks (unmarked answers count as 0) for a student in a domain.

    With ``test_id`` the total is also written to that attempt's score;
    no attempt is ever created here. Returns ``(total, persisted)``.
    """
    answers = Answer.objects.filter(student_id=student_id, domain_id=domain_id)
    if test_id:
        answers = answers.filter(test_id=test_id)

    total = answers.aggregate(total=Sum('mark'))['total'] or Decimal('0')

    persisted = False
    if test_id:
        persisted = bool(
            Attempt.objects.filter(student_id=student_id, test_id=test_id)
            .update(score=total, updated_at=timezone.now())
        )
        if not persisted:
            logger.info("No attempt for student=%s test=%s; total %s not stored", student_id, test_id, total)

    logger.info("Total for student=%s domain=%s test=%s: %s", student_id, domain_id, test_id, total)
    return total, persisted


def domain_mark_sheet(domain_id, test_id=None):
    """Answers for a domain grouped per student with a running total mark."""
    answers = (
        Answer.objects.filter(domain_id=domain_id)
        .select_related('student', 'question')
        .order_by('-submitted_at')
    )
    if test_id:
        answers = answers.filter(test_id=test_id)

    sheet = {}
    for answer in answers:
        row = sheet.setdefault(answer.student_id, {
            'student': answer.student,
            'sections': {'A': [], 'B': []},
            'total_mark': Decimal('0'),
        })
        row['sections'].setdefault(answer.section, []).append(answer)
        if answer.mark is not None:
            row['total_mark'] += answer.mark
    return list(sheet.values())
