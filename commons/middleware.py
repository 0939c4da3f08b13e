import json
import logging
import time
import uuid

from django.utils.deprecation import MiddlewareMixin

logger = logging.getLogger("django.request")


class RequestLogMiddleware(MiddlewareMixin):
    """
    Asigna un request_id (X-Request-ID entrante o uno nuevo), lo devuelve
    en la respuesta y registra una línea JSON por petición con la latencia.
    """

    def process_request(self, request):
        request.request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        request._start_time = time.time()

    def process_response(self, request, response):
        request_id = getattr(request, "request_id", "-")
        latency = int((time.time() - getattr(request, "_start_time", time.time())) * 1000)
        payload = {
            "request_id": request_id,
            "path": request.path,
            "method": request.method,
            "status": response.status_code,
            "latency_ms": latency,
        }
        logger.info(json.dumps(payload, ensure_ascii=False))
        response["X-Request-ID"] = request_id
        return response
