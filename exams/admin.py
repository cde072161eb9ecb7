from django.contrib import admin

# Register your models here.
from .models import Domain, Question, Test, TestDomain


class TestDomainInline(admin.TabularInline):
    model = TestDomain
    extra = 1


@admin.register(Test)
class TestAdmin(admin.ModelAdmin):
    list_display = ('title', 'start_date', 'end_date', 'duration_minutes')
    search_fields = ('title',)
    filter_horizontal = ('eligible_students',)
    inlines = [TestDomainInline]


admin.site.register(Domain)
admin.site.register(Question)
