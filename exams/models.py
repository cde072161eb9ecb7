# exam_platform/exams/models.py
from django.conf import settings
from django.db import models

from . import clock


def default_duration_minutes():
    return settings.EXAM_DEFAULT_DURATION_MINUTES


def default_sections():
    return list(settings.EXAM_SECTIONS)


class Section(models.TextChoices):
    A = "A", "Section A"
    B = "B", "Section B"


class Domain(models.Model):
    name = models.CharField(max_length=150, unique=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name


class Question(models.Model):
    class Difficulty(models.TextChoices):
        EASY = "easy", "Easy"
        MEDIUM = "medium", "Medium"
        HARD = "hard", "Hard"

    domain = models.ForeignKey(Domain, related_name='questions', on_delete=models.CASCADE)
    section = models.CharField(max_length=1, choices=Section.choices, default=Section.A)

    title = models.CharField(max_length=255)
    description = models.TextField()
    difficulty = models.CharField(max_length=20, choices=Difficulty.choices, default=Difficulty.MEDIUM)

    # Reference answer for graders, never sent to students
    answer_text = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)

    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [models.Index(fields=['domain', 'section', 'is_active'], name='question_domain_section_idx')]

    def __str__(self):
        return f"{self.title[:50]}..."


class Test(models.Model):
    title = models.CharField(max_length=255, unique=True)
    domains = models.ManyToManyField(Domain, through='TestDomain', related_name='tests')

    start_date = models.DateTimeField()
    end_date = models.DateTimeField()
    duration_minutes = models.PositiveIntegerField(default=default_duration_minutes)
    sections = models.JSONField(default=default_sections)

    # Empty means open to every active student
    eligible_students = models.ManyToManyField(settings.AUTH_USER_MODEL, blank=True, related_name='eligible_tests')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['start_date', 'id']

    def __str__(self):
        return self.title

    def status_at(self, now):
        return clock.test_status(self, now)

    def ordered_domains(self):
        return [link.domain for link in self.domain_links.select_related('domain').order_by('position')]

    def has_domain(self, domain_id):
        return self.domain_links.filter(domain_id=domain_id).exists()

    def set_domains(self, domains):
        self.domain_links.all().delete()
        TestDomain.objects.bulk_create(
            TestDomain(test=self, domain=domain, position=index)
            for index, domain in enumerate(domains)
        )

    def is_open_to(self, user):
        links = self.eligible_students.all()
        return not links.exists() or links.filter(pk=user.pk).exists()


class TestDomain(models.Model):
    """Keeps the administrator's domain order for a test."""
    test = models.ForeignKey(Test, on_delete=models.CASCADE, related_name='domain_links')
    domain = models.ForeignKey(Domain, on_delete=models.CASCADE, related_name='test_links')
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['position']
        constraints = [
            models.UniqueConstraint(fields=['test', 'domain'], name='unique_domain_per_test'),
        ]
