from rest_framework import status, views
from rest_framework.response import Response

from cores.exceptions import InvalidRequest
from cores.models import AuditLog
from exams import clock
from exams.services import get_test

from . import attempts, ledger, scoring
from .permissions import IsStaff, IsStudent
from .serializers import (
    AddMarkSerializer, AnswerSerializer, AttemptSerializer, CalculateTotalSerializer,
    EditMarkSerializer, ExamWindowRequestSerializer, GradedAnswerSerializer,
    ImageReferenceSerializer, MarkSheetRowSerializer, SubmitAnswerSerializer,
)
from .models import Answer


class ClockedAPIView(views.APIView):
    """Takes one clock reading per request and shares it with serializers."""

    def initial(self, request, *args, **kwargs):
        self.now = clock.now()
        super().initial(request, *args, **kwargs)

    def get_serializer_context(self):
        return {'request': self.request, 'view': self, 'now': self.now}


# --- STUDENT VIEWS ---

class StartExamWindowView(ClockedAPIView):
    """
    Student opens a domain/section.
    Returns the window their answers must fall into (existing or fresh).
    """
    permission_classes = [IsStudent]

    def post(self, request):
        payload = ExamWindowRequestSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        data = payload.validated_data

        window = ledger.open_exam_window(
            request.user, data['domain_id'], data['section'].upper(),
            test_id=data.get('test_id'), now=self.now,
        )
        window['message'] = 'Exam session started' if window['is_new'] else 'Exam session already exists'
        return Response(window)


class ExamStatusView(ClockedAPIView):
    permission_classes = [IsStudent]

    def get(self, request, domain_id, section):
        return Response(ledger.exam_status(request.user, domain_id, section.upper(), now=self.now))


class SubmitAnswerView(ClockedAPIView):
    """Student saves (or re-saves) the answer to one question."""
    permission_classes = [IsStudent]

    def post(self, request):
        payload = SubmitAnswerSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        data = payload.validated_data

        answer, created = ledger.submit_answer(
            request.user,
            question_id=data['question_id'],
            domain_id=data['domain_id'],
            section=data['section'].upper(),
            text=data['answer_text'],
            test_id=data.get('test_id'),
            exam_start_time=data.get('exam_start_time'),
            image_url=data['image_url'],
            image_public_id=data['image_public_id'],
            now=self.now,
        )
        return Response({
            "message": "Answer submitted successfully" if created else "Answer updated successfully",
            "answer": AnswerSerializer(answer).data,
        }, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)


class MyAnswersView(views.APIView):
    permission_classes = [IsStudent]

    def get(self, request, domain_id, section):
        answers = (
            Answer.objects.filter(student=request.user, domain_id=domain_id, section=section.upper())
            .select_related('question')
            .order_by('-submitted_at')
        )
        return Response({"answers": AnswerSerializer(answers, many=True).data})


class AttemptDetailView(ClockedAPIView):
    """Student reads their own attempt; an overdue unsubmitted attempt reads as expired."""
    permission_classes = [IsStudent]

    def get(self, request, test_id):
        attempt = attempts.get_attempt(request.user, get_test(test_id))
        return Response(AttemptSerializer(attempt, context=self.get_serializer_context()).data)


# --- STAFF VIEWS ---

class AddMarkView(views.APIView):
    """Staff marks an answer for the first time."""
    permission_classes = [IsStaff]

    def post(self, request):
        payload = AddMarkSerializer(data=request.data)
        payload.is_valid(raise_exception=True)

        answer = ledger.add_mark(payload.validated_data['answer_id'], payload.validated_data['mark'])
        AuditLog.record(request.user, 'GRADE', answer, f"Mark {answer.mark} added")
        return Response({"message": "Mark saved successfully", "answer": GradedAnswerSerializer(answer).data})


class EditMarkView(views.APIView):
    permission_classes = [IsStaff]

    def put(self, request, pk):
        payload = EditMarkSerializer(data=request.data)
        payload.is_valid(raise_exception=True)

        answer = ledger.edit_mark(pk, payload.validated_data['mark'])
        AuditLog.record(request.user, 'REGRADE', answer, f"Mark changed to {answer.mark}")
        return Response({"message": "Mark updated successfully", "answer": GradedAnswerSerializer(answer).data})


class CalculateTotalView(views.APIView):
    permission_classes = [IsStaff]

    def post(self, request):
        payload = CalculateTotalSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        data = payload.validated_data

        total, persisted = scoring.compute_total(data['student_id'], data['domain_id'], data.get('test_id'))
        if persisted:
            AuditLog.objects.create(
                actor=request.user,
                action='SCORE',
                target_model='Attempt',
                target_object_id=f"{data['student_id']}:{data['test_id']}",
                details=f"Score set to {total}",
            )
        return Response({"total": total, "persisted": persisted})


class DomainAnswersView(views.APIView):
    """Answers for one domain, grouped per student (optionally for one test)."""
    permission_classes = [IsStaff]

    def get(self, request, domain_id):
        test_id = request.query_params.get('test') or None
        if test_id is not None and not test_id.isdigit():
            raise InvalidRequest('test must be a numeric id.')
        rows = scoring.domain_mark_sheet(domain_id, test_id)
        return Response({"answers": MarkSheetRowSerializer(rows, many=True).data})


class AnswerDetailView(views.APIView):
    permission_classes = [IsStaff]

    def delete(self, request, pk):
        ledger.delete_answer(pk)
        return Response({"message": "Answer deleted successfully"})


class AnswerImageView(views.APIView):
    permission_classes = [IsStaff]

    def delete(self, request, pk):
        payload = ImageReferenceSerializer(data=request.data)
        payload.is_valid(raise_exception=True)

        answer = ledger.remove_image_reference(pk, payload.validated_data['image_url'])
        return Response({"message": "Answer image deleted successfully", "answer": AnswerSerializer(answer).data})
