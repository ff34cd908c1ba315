from django.apps import AppConfig


class ShopifyBitrixConfig(AppConfig):
    name = "shopify_bitrix"
    verbose_name = "Shopify → Bitrix24"
    default_auto_field = "django.db.models.AutoField"

    def ready(self):
        # Import handler modules to trigger topic registration in router.
        import shopify_bitrix.handlers.orders  # noqa: F401
