from django.http import JsonResponse

from messaging.presence import get_presence_registry


def health(request):
    # Presence is per-process, so this reports what this worker can reach
    return JsonResponse({"status": "ok", "online_users": len(get_presence_registry())})
