from shared.helper.HelperConfig import HelperConfig
from shared.clients.datastore.DataStoreClientInterface import DataStoreClientInterface


class DataStoreClientManager:
    """Manager class to instantiate the configured data store client.

    The data store is optional: without DATASTORE_ENGINE the resume and API-key
    features are disabled and get_client() returns None.
    """

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client = self._initialize_client()

    def _get_engine_from_env(self) -> str | None:
        engine = self.helper_config.get_string_val("DATASTORE_ENGINE", default="")
        if not engine:
            return None
        return engine.strip().lower().capitalize()

    def _initialize_client(self) -> DataStoreClientInterface | None:
        """Instantiate the data store client for the configured engine.

        Raises:
            ValueError: If the engine is unsupported or cannot be imported.
        """
        engine = self._get_engine_from_env()
        if engine is None:
            self.logging.info("No DATASTORE_ENGINE configured. Resume and API key features are disabled.")
            return None
        class_name = f"DataStoreClient{engine}"
        try:
            module = __import__(
                f"shared.clients.datastore.{engine.lower()}.{class_name}",
                fromlist=[class_name],
            )
            client_class = getattr(module, class_name)
            client = client_class(helper_config=self.helper_config)
            self.logging.debug("Instantiated data store client for engine: %s", engine)
            return client
        except (ImportError, AttributeError) as e:
            raise ValueError("Unsupported data store engine '%s'. Error: %s" % (engine, e))

    def get_client(self) -> DataStoreClientInterface | None:
        return self.client
