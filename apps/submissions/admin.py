from django.contrib import admin

from .models import Submission


@admin.register(Submission)
class SubmissionAdmin(admin.ModelAdmin):
    list_display = ['id', 'domain', 'owner', 'title', 'status', 'raw_valuation', 'computed_points', 'updated_at']
    list_filter = ['domain', 'status', 'created_at']
    search_fields = ['title', 'owner__username', 'owner__email']
    readonly_fields = ['computed_points', 'created_at', 'updated_at']
