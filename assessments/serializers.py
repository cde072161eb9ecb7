from rest_framework import serializers

from exams import clock
from exams.serializers import DomainSummarySerializer, TestSerializer
from users.serializers import UserSummarySerializer
from .models import Answer, Attempt


class AttemptSerializer(serializers.ModelSerializer):
    test_title = serializers.CharField(source='test.title', read_only=True)
    selected_domain = DomainSummarySerializer(read_only=True)
    effective_status = serializers.SerializerMethodField()
    time_remaining_seconds = serializers.SerializerMethodField()

    class Meta:
        model = Attempt
        fields = [
            'id', 'test', 'test_title', 'student', 'start_time', 'due_time', 'end_time',
            'status', 'effective_status', 'time_remaining_seconds',
            'selected_domain', 'selected_section', 'score',
        ]
        read_only_fields = fields

    def _now(self):
        return self.context.get('now') or clock.now()

    def get_effective_status(self, obj):
        return obj.effective_status(self._now())

    def get_time_remaining_seconds(self, obj):
        return obj.time_remaining_seconds(self._now())


class AttemptWithTestSerializer(AttemptSerializer):
    """Dashboard rows: the attempt plus the test it belongs to."""
    test = TestSerializer(read_only=True)


class StudentAttemptListSerializer(serializers.Serializer):
    upcoming = AttemptWithTestSerializer(many=True)
    active = AttemptWithTestSerializer(many=True)
    completed = AttemptWithTestSerializer(many=True)


class AnswerSerializer(serializers.ModelSerializer):
    question_title = serializers.CharField(source='question.title', read_only=True)

    class Meta:
        model = Answer
        fields = [
            'id', 'student', 'domain', 'question', 'question_title', 'test', 'section',
            'text', 'image_url', 'exam_start_time', 'exam_end_time', 'submitted_at',
            'is_submitted', 'mark', 'mark_submitted',
        ]
        read_only_fields = fields


class GradedAnswerSerializer(AnswerSerializer):
    """Staff view of an answer, with who wrote it."""
    student = UserSummarySerializer(read_only=True)


# --- Request payloads ---

class ExamWindowRequestSerializer(serializers.Serializer):
    domain_id = serializers.IntegerField()
    section = serializers.CharField(max_length=1)
    test_id = serializers.IntegerField(required=False, allow_null=True)


class SubmitAnswerSerializer(serializers.Serializer):
    question_id = serializers.IntegerField()
    domain_id = serializers.IntegerField()
    section = serializers.CharField(max_length=1)
    # Blank text is rejected by the ledger with its own error
    answer_text = serializers.CharField(required=False, allow_blank=True, default='', trim_whitespace=False)
    test_id = serializers.IntegerField(required=False, allow_null=True)
    exam_start_time = serializers.DateTimeField(required=False, allow_null=True)
    image_url = serializers.CharField(required=False, allow_blank=True, default='', max_length=500)
    image_public_id = serializers.CharField(required=False, allow_blank=True, default='', max_length=255)


class AddMarkSerializer(serializers.Serializer):
    answer_id = serializers.IntegerField()
    mark = serializers.DecimalField(max_digits=6, decimal_places=2)


class EditMarkSerializer(serializers.Serializer):
    mark = serializers.DecimalField(max_digits=6, decimal_places=2)


class CalculateTotalSerializer(serializers.Serializer):
    student_id = serializers.IntegerField()
    domain_id = serializers.IntegerField()
    test_id = serializers.IntegerField(required=False, allow_null=True)


class ImageReferenceSerializer(serializers.Serializer):
    image_url = serializers.CharField(max_length=500)


class MarkSheetRowSerializer(serializers.Serializer):
    student = UserSummarySerializer()
    sections = serializers.SerializerMethodField()
    total_mark = serializers.DecimalField(max_digits=10, decimal_places=2)

    def get_sections(self, row):
        return {
            section: GradedAnswerSerializer(answers, many=True).data
            for section, answers in row['sections'].items()
        }
