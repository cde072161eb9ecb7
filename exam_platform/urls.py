from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),

    # --- Authentication & Profile ---
    path('api/', include('users.urls')),

    # --- Test Catalog & Attempts ---
    path('api/', include('exams.urls')),

    # --- Answers, Marks & Totals ---
    path('api/', include('assessments.urls')),

    # --- Audit Trail ---
    path('api/', include('cores.urls')),
]
