from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Sum


class WidgetQuerySet(models.QuerySet):
    def recent(self, limit: int):
        return self.order_by("-created_at", "-pk")[:limit]

    def total_stock(self) -> int:
        return self.aggregate(total=Sum("stock"))["total"] or 0


class Widget(models.Model):
    """
    An inventory item: what it is and how many are in stock.

    All three fields are required; stock is a non-negative integer.
    """

    name = models.CharField(max_length=255)
    description = models.TextField()
    stock = models.IntegerField(validators=[MinValueValidator(0)])
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = WidgetQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at", "-pk"]

    def __str__(self) -> str:
        return f"{self.name} ({self.stock})"

    def to_dict(self) -> dict:
        return {
            "id": self.pk,
            "name": self.name,
            "description": self.description,
            "stock": self.stock,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
