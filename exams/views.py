from rest_framework import viewsets, permissions, status, filters
from rest_framework.decorators import action
from rest_framework.response import Response

from assessments import attempts
from assessments.permissions import IsAdmin, IsStudent
from assessments.serializers import AttemptSerializer, StudentAttemptListSerializer
from cores import notifications
from cores.models import AuditLog

from . import clock, services
from .models import Question, Test
from .serializers import (
    QuestionSerializer, StartAttemptSerializer, StudentTestListSerializer,
    TestSerializer, TestWriteSerializer,
)


class TestViewSet(viewsets.ModelViewSet):
    queryset = Test.objects.all().prefetch_related('domain_links__domain', 'eligible_students').order_by('start_date', 'id')
    serializer_class = TestSerializer

    # Enable search on title
    filter_backends = [filters.SearchFilter]
    search_fields = ['title']

    def get_permissions(self):
        if self.action == 'retrieve':
            return [permissions.IsAuthenticated()]
        if self.action in ['student', 'my_tests', 'start', 'submit']:
            return [IsStudent()]
        return [IsAdmin()]

    def initial(self, request, *args, **kwargs):
        # A single clock reading for everything derived in this request
        self.now = clock.now()
        super().initial(request, *args, **kwargs)

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context['now'] = self.now
        return context

    def get_object(self):
        return services.get_test(self.kwargs[self.lookup_url_kwarg or self.lookup_field])

    # --- Admin CRUD ---

    def create(self, request, *args, **kwargs):
        payload = TestWriteSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        data = payload.validated_data

        test = services.create_test(
            title=data['title'],
            domain_ids=data['domains'],
            start_date=data['start_date'],
            end_date=data['end_date'],
            duration_minutes=data.get('duration_minutes'),
            sections=data.get('sections'),
            eligible_ids=data.get('eligible_students'),
        )
        AuditLog.record(request.user, 'CREATE', test, f"Created test: {test.title}")
        notifications.notify_test_invitation(test, test.eligible_students.all())

        return Response(self.get_serializer(test).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        test = self.get_object()
        payload = TestWriteSerializer(data=request.data, partial=True)
        payload.is_valid(raise_exception=True)

        test = services.update_test(test, **payload.validated_data)
        AuditLog.record(request.user, 'UPDATE', test, f"Updated test: {', '.join(sorted(payload.validated_data))}")
        return Response(self.get_serializer(test).data)

    def partial_update(self, request, *args, **kwargs):
        return self.update(request, *args, **kwargs)

    def destroy(self, request, *args, **kwargs):
        test = self.get_object()
        AuditLog.record(request.user, 'DELETE', test, f"Deleted test: {test.title}")
        removed = services.delete_test(test)
        return Response({"message": "Test deleted", "attempts_removed": removed})

    @action(detail=False, methods=['get'], url_path=r'check-title/(?P<title>[^/]+)')
    def check_title(self, request, title=None):
        return Response({"exists": services.title_exists(title)})

    # --- Student Views ---

    @action(detail=False, methods=['get'], url_path='student')
    def student(self, request):
        buckets = services.list_for_student(request.user, now=self.now)
        return Response(StudentTestListSerializer(buckets, context=self.get_serializer_context()).data)

    @action(detail=False, methods=['get'], url_path='student/my-tests')
    def my_tests(self, request):
        buckets = attempts.categorize_attempts(request.user, now=self.now)
        return Response(StudentAttemptListSerializer(buckets, context=self.get_serializer_context()).data)

    @action(detail=True, methods=['post'], url_path='start')
    def start(self, request, pk=None):
        test = self.get_object()
        payload = StartAttemptSerializer(data=request.data)
        payload.is_valid(raise_exception=True)

        attempt, created = attempts.start_attempt(
            request.user, test,
            payload.validated_data['domain_id'], payload.validated_data['section'],
            now=self.now,
        )

        # Questions for the domain+section frozen on the attempt
        questions = Question.objects.filter(
            domain_id=attempt.selected_domain_id,
            section=attempt.selected_section,
            is_active=True,
        ).order_by('id')

        return Response({
            "attempt": AttemptSerializer(attempt, context=self.get_serializer_context()).data,
            "questions": QuestionSerializer(questions, many=True).data,
            "due_time": attempt.due_time,
        }, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)

    @action(detail=True, methods=['post'], url_path='submit')
    def submit(self, request, pk=None):
        test = self.get_object()
        attempt, transitioned = attempts.submit_attempt(request.user, test, now=self.now)
        if transitioned:
            notifications.notify_attempt_submitted(attempt)

        return Response({
            "ok": True,
            "status": attempt.status,
            "attempt": AttemptSerializer(attempt, context=self.get_serializer_context()).data,
        })
