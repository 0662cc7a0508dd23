from __future__ import annotations

import json
import logging

from django.forms.models import model_to_dict
from django.http import (
    HttpRequest,
    HttpResponse,
    HttpResponseBadRequest,
    JsonResponse,
    QueryDict,
)
from django.shortcuts import get_object_or_404, redirect, render
from django.urls import reverse
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from .forms import WidgetForm
from .models import Widget

logger = logging.getLogger(__name__)

RECENT_ON_WELCOME = 5
RECENT_ON_INDEX = 20


def _wants_json(request: HttpRequest) -> bool:
    return (
        request.GET.get("format") == "json"
        or "application/json" in request.headers.get("Accept", "")
    )


def _widget_data(request: HttpRequest):
    """
    Submitted widget fields, whatever the encoding (form or JSON body, and
    for PATCH/PUT the raw body since Django only parses POST).
    """
    if request.content_type == "application/json":
        payload = json.loads(request.body or b"{}")
        # Clients may nest the fields under "widget".
        if isinstance(payload, dict):
            payload = payload.get("widget", payload)
        if not isinstance(payload, dict):
            raise ValueError("expected a JSON object")
        return payload
    if request.method == "POST":
        return request.POST
    return QueryDict(request.body)


def _errors(form: WidgetForm) -> dict[str, list[str]]:
    return {
        field: [e["message"] for e in errors]
        for field, errors in form.errors.get_json_data().items()
    }


@require_GET
def welcome(request: HttpRequest) -> HttpResponse:
    """
    Landing page: the newest widgets and inventory totals.
    """
    widgets = list(Widget.objects.recent(RECENT_ON_WELCOME))
    widget_count = Widget.objects.count()
    total_stock = Widget.objects.total_stock()

    if _wants_json(request):
        return JsonResponse(
            {
                "widgets": [w.to_dict() for w in widgets],
                "widget_count": widget_count,
                "total_stock": total_stock,
            }
        )
    return render(
        request,
        "widgets/welcome.html",
        {"widgets": widgets, "widget_count": widget_count, "total_stock": total_stock},
    )


@require_http_methods(["GET", "POST"])
def widget_list(request: HttpRequest) -> HttpResponse:
    """GET lists the newest widgets, POST creates one."""
    if request.method == "POST":
        return _create(request)

    widgets = list(Widget.objects.recent(RECENT_ON_INDEX))
    if _wants_json(request):
        return JsonResponse({"widgets": [w.to_dict() for w in widgets]})
    return render(request, "widgets/index.html", {"widgets": widgets})


def _create(request: HttpRequest) -> HttpResponse:
    try:
        form = WidgetForm(_widget_data(request))
    except ValueError:
        return HttpResponseBadRequest("malformed request body")

    if form.is_valid():
        widget = form.save()
        logger.info("Created widget %s", widget.pk)
        location = reverse("widgets:detail", args=[widget.pk])
        if _wants_json(request):
            response = JsonResponse(widget.to_dict(), status=201)
            response["Location"] = location
            return response
        return redirect(location)

    if _wants_json(request):
        return JsonResponse({"errors": _errors(form)}, status=422)
    return render(request, "widgets/form.html", {"form": form, "widget": None})


@require_GET
def widget_new(request: HttpRequest) -> HttpResponse:
    return render(request, "widgets/form.html", {"form": WidgetForm(), "widget": None})


@require_http_methods(["GET", "POST", "PUT", "PATCH", "DELETE"])
def widget_detail(request: HttpRequest, pk: int) -> HttpResponse:
    widget = get_object_or_404(Widget, pk=pk)

    if request.method == "DELETE":
        return _destroy(request, widget)
    if request.method != "GET":
        return _update(request, widget)

    if _wants_json(request):
        return JsonResponse(widget.to_dict())
    return render(request, "widgets/show.html", {"widget": widget})


def _update(request: HttpRequest, widget: Widget) -> HttpResponse:
    try:
        submitted = _widget_data(request)
    except ValueError:
        return HttpResponseBadRequest("malformed request body")

    # Fields left out of the request keep their current values.
    data = model_to_dict(widget, fields=WidgetForm.Meta.fields)
    for field in WidgetForm.Meta.fields:
        if field in submitted:
            data[field] = submitted[field]

    form = WidgetForm(data, instance=widget)
    if form.is_valid():
        widget = form.save()
        logger.info("Updated widget %s", widget.pk)
        if _wants_json(request):
            return JsonResponse(widget.to_dict())
        return redirect("widgets:detail", pk=widget.pk)

    if _wants_json(request):
        return JsonResponse({"errors": _errors(form)}, status=422)
    return render(request, "widgets/form.html", {"form": form, "widget": widget})


@require_GET
def widget_edit(request: HttpRequest, pk: int) -> HttpResponse:
    widget = get_object_or_404(Widget, pk=pk)
    return render(
        request,
        "widgets/form.html",
        {"form": WidgetForm(instance=widget), "widget": widget},
    )


@require_POST
def widget_delete(request: HttpRequest, pk: int) -> HttpResponse:
    widget = get_object_or_404(Widget, pk=pk)
    return _destroy(request, widget)


def _destroy(request: HttpRequest, widget: Widget) -> HttpResponse:
    pk = widget.pk
    widget.delete()
    logger.info("Deleted widget %s", pk)
    if _wants_json(request):
        return HttpResponse(status=204)
    return redirect("widgets:list")
