from django import forms

from .models import Widget


class WidgetForm(forms.ModelForm):
    # Only these fields are ever taken from request input.
    class Meta:
        model = Widget
        fields = ["name", "description", "stock"]
