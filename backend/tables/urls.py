from django.urls import path
from .views import TableListView, TableAssignView, TableReleaseView, TableSyncView

app_name = "tables"

urlpatterns = [
    path("", TableListView.as_view(), name="table-list"),
    path("sync/", TableSyncView.as_view(), name="table-sync"),
    path("<int:pk>/assign/", TableAssignView.as_view(), name="table-assign"),
    path("<int:pk>/release/", TableReleaseView.as_view(), name="table-release"),
]
