from django.urls import path

from . import views

urlpatterns = [
    path("selection/", views.update_selection, name="explorer-selection"),
    path("metrics/", views.market_metrics, name="explorer-metrics"),
    path("trend/", views.trend_chart, name="explorer-trend"),
    path("trend.csv", views.download_trend_csv, name="explorer-trend-csv"),
]
