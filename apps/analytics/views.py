import json
import logging

from django.http import JsonResponse
from django.utils.decorators import method_decorator
from django.views.decorators.csrf import csrf_exempt
from django.views.generic import View

from apps.analytics.conf import get_setting
from apps.analytics.exceptions import AnalyticsError, InputError
from apps.analytics.services.analytics_service import AnalyticsService

logger = logging.getLogger(__name__)


def _pick(data, *keys):
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def error_response(error: str, message: str, status: int) -> JsonResponse:
    return JsonResponse({"error": error, "message": message}, status=status)


class AnalysisView(View):
    http_method_names = ["post"]
    success_message = "Enhanced analysis completed successfully"

    def run(self, request):
        raise NotImplementedError

    def post(self, request, *args, **kwargs):
        try:
            result = self.run(request)
        except InputError as e:
            logger.info("Rejected analysis request: %s", e)
            return error_response("Invalid data", str(e), 400)
        except AnalyticsError as e:
            logger.error("Enhanced analysis failed: %s", e)
            return error_response("Enhanced analysis failed", str(e), 500)
        except Exception as e:
            logger.exception("Unexpected error during analysis")
            return error_response("Enhanced analysis failed", str(e), 500)

        return JsonResponse(
            {"success": True, "message": self.success_message, **result}
        )


@method_decorator(csrf_exempt, name="dispatch")
class EnhancedAnalysisView(AnalysisView):
    def run(self, request):
        try:
            payload = json.loads(request.body or b"{}")
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise InputError(f"Malformed JSON body: {e}") from e
        if not isinstance(payload, dict):
            raise InputError("Request body must be a JSON object")

        service = AnalyticsService()
        return service.analyze(
            _pick(payload, "sheet_data", "sheetData"),
            _pick(payload, "preprocessing_options", "preprocessingOptions"),
            _pick(payload, "chart_configs", "chartConfigs"),
        )


@method_decorator(csrf_exempt, name="dispatch")
class UploadAnalysisView(AnalysisView):
    success_message = "File analyzed successfully"

    def post(self, request, *args, **kwargs):
        uploaded = request.FILES.get("file")
        if uploaded is not None and uploaded.size > get_setting("MAX_UPLOAD_SIZE"):
            return error_response(
                "File too large",
                f"File exceeds the {get_setting('MAX_UPLOAD_SIZE')} byte upload limit",
                413,
            )
        return super().post(request, *args, **kwargs)

    def run(self, request):
        uploaded = request.FILES.get("file")
        if uploaded is None:
            raise InputError("No file uploaded")

        options = None
        raw_options = _pick(request.POST, "preprocessing_options", "preprocessingOptions")
        if raw_options:
            try:
                options = json.loads(raw_options)
            except json.JSONDecodeError as e:
                raise InputError(f"Malformed preprocessing options: {e}") from e

        service = AnalyticsService()
        return service.analyze_upload(uploaded, uploaded.name, options)
