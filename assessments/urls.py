from django.urls import path
from .views import (
    AddMarkView, AnswerDetailView, AnswerImageView, AttemptDetailView, CalculateTotalView,
    DomainAnswersView, EditMarkView, ExamStatusView, MyAnswersView, StartExamWindowView,
    SubmitAnswerView,
)

urlpatterns = [
    # --- Student Answer Flow ---
    path('answers/start-exam/', StartExamWindowView.as_view(), name='answers-start-exam'),
    path('answers/submit/', SubmitAnswerView.as_view(), name='answers-submit'),
    path('answers/exam-status/<int:domain_id>/<str:section>/', ExamStatusView.as_view(), name='answers-exam-status'),
    path('answers/mine/<int:domain_id>/<str:section>/', MyAnswersView.as_view(), name='answers-mine'),
    path('attempts/<int:test_id>/', AttemptDetailView.as_view(), name='attempt-detail'),

    # --- Grading Module (Staff) ---
    path('answers/marks/add/', AddMarkView.as_view(), name='answers-marks-add'),
    path('answers/marks/edit/<int:pk>/', EditMarkView.as_view(), name='answers-marks-edit'),
    path('answers/calculate-total/', CalculateTotalView.as_view(), name='answers-calculate-total'),
    path('answers/domain/<int:domain_id>/', DomainAnswersView.as_view(), name='answers-by-domain'),
    path('answers/<int:pk>/', AnswerDetailView.as_view(), name='answer-detail'),
    path('answers/<int:pk>/image/', AnswerImageView.as_view(), name='answer-image'),
]
