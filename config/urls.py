from django.urls import path, include


urlpatterns = [
    path('results/', include('results.urls')),
]
