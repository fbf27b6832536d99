from django.db import models
from django.conf import settings


def statement_upload_to(instance, filename):
    return f"statements/{instance.user_id}/{filename}"


class Statement(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="statements")
    customer_name = models.CharField(max_length=255)
    period = models.CharField(max_length=64)
    file_name = models.CharField(max_length=255)
    document = models.FileField(upload_to=statement_upload_to, max_length=500)
    created_at = models.DateTimeField(auto_now_add=True)

    # StatementConfig used for this generation (logo excluded)
    config = models.JSONField(default=dict)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.file_name} for {self.user}"
