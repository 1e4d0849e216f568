from __future__ import annotations

import json
import logging
import re
from typing import Dict

from django.http import HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from explorer.chart_builder import (
    SLOT_SERIES_KEYS,
    build_comparison_chart,
    build_trend_series,
    merge_and_filter,
    merged_rows_frame,
    rows_to_records,
)
from explorer.dataset_reader import get_dataset
from explorer.exceptions import DatasetLoadError, InvalidEventError
from explorer.metrics import DEFAULT_TREND_METRIC, METRICS, is_known_metric, metric_panel, trend_metric_options
from explorer.selection import (
    DatasetLoaded,
    ExplorerState,
    active_selections,
    event_from_dict,
    initial_state,
    reduce_selection,
    resolve_state,
    selector_options,
    state_from_dict,
    state_to_dict,
)
from explorer.summary_generator import market_title, series_label, tooltip_lines

logger = logging.getLogger(__name__)

FILENAME_UNSAFE_REGEX = re.compile(r'["\\\r\n;]')


def _read_payload(request) -> Dict | None:
    try:
        payload = json.loads(request.body.decode("utf-8") or "{}")
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    return payload if isinstance(payload, dict) else None


def _invalid_body() -> JsonResponse:
    return JsonResponse({"detail": "Invalid JSON body."}, status=400)


def _dataset_unavailable(exc: DatasetLoadError) -> JsonResponse:
    return JsonResponse({"detail": f"Market data is unavailable: {exc}"}, status=503)


def _series_labels(state: ExplorerState) -> Dict[str, str]:
    return {
        SLOT_SERIES_KEYS[slot]: series_label(selection)
        for slot, selection in active_selections(state).items()
    }


@csrf_exempt
@require_POST
def update_selection(request):
    """
    Apply one selector event to the client's state and return the resolved
    state with matching option lists. Without a state the dataset defaults
    are returned.
    """
    payload = _read_payload(request)
    if payload is None:
        return _invalid_body()

    event = None
    if payload.get("event") is not None:
        try:
            event = event_from_dict(payload["event"])
        except InvalidEventError as exc:
            logger.warning(f"Rejected selection event {payload['event']!r}: {exc}")
            return JsonResponse({"detail": str(exc)}, status=400)

    try:
        dataset = get_dataset()
    except DatasetLoadError as exc:
        return _dataset_unavailable(exc)

    if payload.get("state") is None:
        state = reduce_selection(initial_state(), DatasetLoaded(), dataset)
    else:
        state = resolve_state(state_from_dict(payload["state"]), dataset)
    if event is not None:
        state = reduce_selection(state, event, dataset)

    return JsonResponse(
        {
            "state": state_to_dict(state),
            "options": selector_options(state, dataset),
            "metrics": trend_metric_options(),
        }
    )


@csrf_exempt
@require_POST
def market_metrics(request):
    payload = _read_payload(request)
    if payload is None:
        return _invalid_body()

    try:
        dataset = get_dataset()
    except DatasetLoadError as exc:
        return _dataset_unavailable(exc)

    state = resolve_state(state_from_dict(payload.get("state")), dataset)
    primary = state.primary
    return JsonResponse(
        {
            "title": market_title(primary.city),
            "period": state.period,
            "sections": metric_panel(dataset, primary.country, primary.city, state.period, primary.submarket),
        }
    )


@csrf_exempt
@require_POST
def trend_chart(request):
    payload = _read_payload(request)
    if payload is None:
        return _invalid_body()

    try:
        dataset = get_dataset()
    except DatasetLoadError as exc:
        return _dataset_unavailable(exc)

    state = resolve_state(state_from_dict(payload.get("state")), dataset)
    rows = build_comparison_chart(dataset, state)
    labels = _series_labels(state)

    records = rows_to_records(rows)
    for record, row in zip(records, rows):
        record["tooltip"] = tooltip_lines(row, labels)

    return JsonResponse(
        {
            "title": market_title(state.primary.city),
            "metric": {"key": state.metric, "label": METRICS[state.metric].label},
            "series": labels,
            "start_period": state.start_period,
            "end_period": state.end_period,
            "rows": records,
        }
    )


@require_GET
def download_trend_csv(request):
    country = (request.GET.get("country") or "").strip()
    city = (request.GET.get("city") or "").strip()
    if not country or not city:
        return JsonResponse({"detail": "country and city query parameters are required."}, status=400)

    metric = (request.GET.get("metric") or DEFAULT_TREND_METRIC).strip()
    if not is_known_metric(metric):
        return JsonResponse({"detail": f"Unknown metric '{metric}'."}, status=400)

    try:
        dataset = get_dataset()
    except DatasetLoadError as exc:
        return _dataset_unavailable(exc)

    submarket = (request.GET.get("submarket") or "").strip()
    series = build_trend_series(dataset, country, city, submarket, metric)
    rows = merge_and_filter(
        series,
        start_period=(request.GET.get("start") or "").strip(),
        end_period=(request.GET.get("end") or "").strip(),
    )
    if not rows:
        return JsonResponse({"detail": "No data available for the requested market."}, status=404)

    frame = merged_rows_frame(rows, labels={"base": metric})[["period", metric]]
    response = HttpResponse(frame.to_csv(index=False), content_type="text/csv; charset=utf-8")
    safe_name = "_".join(
        FILENAME_UNSAFE_REGEX.sub("", part.replace(" ", "_")) for part in (city, submarket, metric) if part
    )
    response["Content-Disposition"] = f'attachment; filename="{safe_name}.csv"'
    return response
