import io
import os
import ZConfig


SCHEMA_PATH = os.path.join(os.path.dirname(__file__), "schema.xml")


def positive_integer(value):
    """ZConfig datatype for the upload thread pool size."""
    number = int(value)
    if number <= 0:
        raise ValueError(f"value must be greater than 0, got {number}")
    return number


class NativeStoreFactory:
    """ZConfig factory for NativeS3Store."""

    def __init__(self, config):
        self.config = config
        self.name = config.getSectionName()

    def open(self):
        from s3nativefs.s3client import S3Client
        from s3nativefs.store import NativeS3Store

        config = self.config
        s3_client = S3Client(
            bucket_name=config.bucket_name,
            region_name=config.region,
            secret_id=config.secret_id,
            secret_key=config.secret_key,
            app_id=config.app_id,
            endpoint_url=config.endpoint_url,
            prefix=config.key_prefix,
            use_ssl=config.use_https,
            addressing_style=config.addressing_style,
            connect_timeout=config.connect_timeout,
            read_timeout=config.read_timeout,
            upload_thread_pool=config.upload_thread_pool,
            user_agent=config.user_agent,
            multipart_threshold=config.multipart_threshold,
            multipart_chunksize=config.multipart_chunk_size,
        )
        return NativeS3Store(s3_client)


def load_schema():
    with open(SCHEMA_PATH) as f:
        return ZConfig.loadSchemaFile(f)


def load_config(path):
    """Open the store described by the configuration file at ``path``."""
    with open(path) as f:
        config, _handler = ZConfig.loadConfigFile(load_schema(), f)
    return config.store.open()


def store_from_string(text):
    config, _handler = ZConfig.loadConfigFile(load_schema(), io.StringIO(text))
    return config.store.open()
