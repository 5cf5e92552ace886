from django.db import connection
from django.http import JsonResponse
from django.utils import timezone


def health_view(_request):
    return JsonResponse({"status": "ok", "timestamp": timezone.now().isoformat()})


def readiness_view(_request):
    db_ok = False
    try:
        with connection.cursor() as cur:
            cur.execute("SELECT 1;")
        db_ok = True
    except Exception:
        db_ok = False

    ok = db_ok
    code = 200 if ok else 503
    return JsonResponse(
        {"status": "ok" if ok else "degraded", "components": {"db": {"ok": db_ok}}},
        status=code,
    )
