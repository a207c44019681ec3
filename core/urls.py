"""
URL configuration for the Livestock Monitoring service.

The `urlpatterns` list routes URLs to views. For more information please see:
    https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""
from django.urls import path, include

urlpatterns = [
    path('api/monitoring/', include('monitoring.urls')),  # Derived metrics, alerts, scores
]
