# exam_platform/exams/serializers.py
from rest_framework import serializers

from . import clock
from .models import Domain, Question, Test

# --- Helper Serializers ---

class DomainSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Domain
        fields = ['id', 'name']


class QuestionSerializer(serializers.ModelSerializer):
    """What a student sees once an attempt starts. The reference answer stays server-side."""
    class Meta:
        model = Question
        fields = ['id', 'title', 'description', 'domain', 'section', 'difficulty']

# --- Test Serializers ---

class TestSerializer(serializers.ModelSerializer):
    domains = serializers.SerializerMethodField()
    status = serializers.SerializerMethodField()

    class Meta:
        model = Test
        fields = [
            'id', 'title', 'domains', 'start_date', 'end_date',
            'duration_minutes', 'sections', 'eligible_students',
            'status', 'created_at', 'updated_at',
        ]

    def get_domains(self, obj):
        return DomainSummarySerializer(obj.ordered_domains(), many=True).data

    def get_status(self, obj):
        # One clock reading per request, shared by every nested representation
        now = self.context.get('now') or clock.now()
        return obj.status_at(now)


class TestWriteSerializer(serializers.Serializer):
    """Payload shape for create/update; business rules live in exams.services."""
    title = serializers.CharField(max_length=255)
    domains = serializers.ListField(child=serializers.IntegerField(min_value=1), allow_empty=True)
    start_date = serializers.DateTimeField()
    end_date = serializers.DateTimeField()
    duration_minutes = serializers.IntegerField(min_value=1, required=False)
    sections = serializers.ListField(
        child=serializers.CharField(max_length=1), required=False, allow_empty=True,
    )
    eligible_students = serializers.ListField(
        child=serializers.IntegerField(min_value=1), required=False, allow_empty=True,
    )


class StudentTestListSerializer(serializers.Serializer):
    upcoming = TestSerializer(many=True)
    active = TestSerializer(many=True)
    completed = TestSerializer(many=True)


# --- Attempt Serializers ---

class StartAttemptSerializer(serializers.Serializer):
    domain_id = serializers.IntegerField()
    section = serializers.CharField(max_length=1)

    def validate_section(self, value):
        # Membership in the test's own sections is checked when starting
        return value.strip().upper()
