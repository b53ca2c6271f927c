from shared.helper.HelperConfig import HelperConfig
from shared.clients.kb.KBClientInterface import KBClientInterface


class KBClientManager:
    """Manager class to instantiate the configured knowledge-base client."""

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client = self._initialize_client()

    def _get_engine_from_env(self) -> str:
        """Read the knowledge-base engine name from env configuration.

        Returns:
            str: Capitalised engine name (e.g. "Elevenlabs").
        """
        engine = self.helper_config.get_string_val("KB_ENGINE", default="elevenlabs")
        return engine.strip().lower().capitalize()

    def _initialize_client(self) -> KBClientInterface:
        """Instantiate the knowledge-base client for the configured engine.

        Returns:
            KBClientInterface: The instantiated client.

        Raises:
            ValueError: If the engine is unsupported or cannot be imported.
        """
        engine = self._get_engine_from_env()
        class_name = f"KBClient{engine}"
        try:
            module = __import__(
                f"shared.clients.kb.{engine.lower()}.{class_name}",
                fromlist=[class_name],
            )
            client_class = getattr(module, class_name)
            client = client_class(helper_config=self.helper_config)
            self.logging.debug("Instantiated KB client for engine: %s", engine)
            return client
        except (ImportError, AttributeError) as e:
            raise ValueError("Unsupported KB engine '%s'. Error: %s" % (engine, e))

    def get_client(self) -> KBClientInterface:
        """Return the instantiated knowledge-base client."""
        return self.client
