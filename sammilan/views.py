from django.http import JsonResponse
from django.shortcuts import render


def error_404_view(request, exception):
    # API clients get JSON, browsers get the 404.html page
    if request.path.startswith("/api/"):
        return JsonResponse({"error": "Not found"}, status=404)
    return render(request, '404.html', status=404)


def error_500_view(request):
    if request.path.startswith("/api/"):
        return JsonResponse({"error": "Server error"}, status=500)
    return render(request, '500.html', status=500)
