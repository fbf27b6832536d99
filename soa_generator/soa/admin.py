from django.contrib import admin

from .models import Statement


@admin.register(Statement)
class StatementAdmin(admin.ModelAdmin):
    list_display = ("file_name", "customer_name", "period", "user", "created_at")
    list_filter = ("user",)
    search_fields = ("customer_name", "file_name")
    readonly_fields = ("created_at",)
