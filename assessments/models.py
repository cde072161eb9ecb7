# assessments/models.py
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from exams.models import Domain, Question, Section, Test


class Attempt(models.Model):
    """One student's single graded pass at one test."""

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        IN_PROGRESS = "in-progress", "In Progress"
        COMPLETED = "completed", "Completed"
        EXPIRED = "expired", "Expired"

    OPEN_STATUSES = (Status.PENDING, Status.IN_PROGRESS)
    TERMINAL_STATUSES = (Status.COMPLETED, Status.EXPIRED)

    student = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='attempts')
    test = models.ForeignKey(Test, on_delete=models.CASCADE, related_name='attempts')

    # Frozen at start; later edits to the test never move these
    start_time = models.DateTimeField(null=True, blank=True)
    due_time = models.DateTimeField(null=True, blank=True)
    end_time = models.DateTimeField(null=True, blank=True)  # When they submitted

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    selected_domain = models.ForeignKey(Domain, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    selected_section = models.CharField(max_length=1, choices=Section.choices, blank=True)
    score = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['student', 'test'], name='unique_attempt_per_student_test'),
        ]

    def __str__(self):
        return f"{self.student} - {self.test.title}"

    @property
    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES

    def effective_status(self, now):
        """Stored status, with an unsubmitted attempt past its due time read as expired."""
        if self.status == self.Status.IN_PROGRESS and self.due_time and now > self.due_time:
            return self.Status.EXPIRED
        return self.status

    def answer_window(self):
        end = self.due_time
        if self.end_time and (end is None or self.end_time < end):
            end = self.end_time
        return self.start_time, end

    def time_remaining_seconds(self, now):
        if self.is_terminal or not self.due_time:
            return 0
        return max(0, int((self.due_time - now).total_seconds()))


class Answer(models.Model):
    student = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='answers')
    domain = models.ForeignKey(Domain, on_delete=models.CASCADE, related_name='answers')
    question = models.ForeignKey(Question, on_delete=models.CASCADE, related_name='answers')
    test = models.ForeignKey(Test, on_delete=models.CASCADE, null=True, blank=True, related_name='answers')
    section = models.CharField(max_length=1, choices=Section.choices)

    # May embed <img src="..."> references to hosted images
    text = models.TextField(blank=True)
    image_url = models.CharField(max_length=500, blank=True)
    image_public_id = models.CharField(max_length=255, blank=True)

    # Copied from the governing window at submission time
    exam_start_time = models.DateTimeField()
    exam_end_time = models.DateTimeField()
    submitted_at = models.DateTimeField()
    is_submitted = models.BooleanField(default=True)

    # Grading; only the mark operations write these
    mark = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True, validators=[MinValueValidator(0)])
    mark_submitted = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['student', 'question', 'domain', 'section'],
                name='unique_answer_per_question_key',
            ),
        ]
        indexes = [
            models.Index(fields=['student', 'domain', 'section'], name='answer_student_domain_idx'),
            models.Index(fields=['student', 'test'], name='answer_student_test_idx'),
        ]

    def __str__(self):
        return f"{self.student} - Q{self.question_id} ({self.section})"
