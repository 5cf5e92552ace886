from django.urls import path
from .views import OrderPaidWebhookView, PurchaseListView
app_name = "purchases"

urlpatterns = [
    path("webhook/orders/paid", OrderPaidWebhookView.as_view(), name="webhook-orders-paid"),
    path("api/purchases", PurchaseListView.as_view(), name="purchases-list"),
]
