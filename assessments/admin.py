from django.contrib import admin

from .models import Answer, Attempt


@admin.register(Attempt)
class AttemptAdmin(admin.ModelAdmin):
    list_display = ('student', 'test', 'status', 'start_time', 'due_time', 'end_time', 'score')
    list_filter = ('status', 'test')


@admin.register(Answer)
class AnswerAdmin(admin.ModelAdmin):
    list_display = ('student', 'question', 'domain', 'section', 'submitted_at', 'mark')
    list_filter = ('section', 'domain')
