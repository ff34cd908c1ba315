from django.urls import path

from .views import ShopifyOrderWebhookView

urlpatterns = [
    path(
        "orders/",
        ShopifyOrderWebhookView.as_view(),
        name="shopify_order_webhook",
    ),
]
