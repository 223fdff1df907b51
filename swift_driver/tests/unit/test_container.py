"""Unit tests for the dependency injection container."""

from unittest.mock import patch

import pytest

from swift_driver.infrastructure.config import Config
from swift_driver.infrastructure.container import Container, get_container


@pytest.mark.unit
class TestContainer:
    """Test container wiring."""

    def test_create_uses_config(self, container):
        assert container.config.swift.container == "registry"
        assert container.metrics is not None
        assert container.tracer is not None

    def test_singleton(self, container):
        assert Container.get() is container
        assert get_container() is container
        assert Container.create() is container

    def test_create_driver_requires_credentials(self):
        config = Config(swift={"container": "registry"})
        with patch("swift_driver.infrastructure.container.get_config", return_value=config):
            container = Container.create()

        with pytest.raises(ValueError, match="password"):
            container.create_driver()

    def test_driver_is_created_once(self, container):
        driver = object()
        with patch.object(Container, "create_driver", return_value=driver) as create_driver:
            assert container.driver() is driver
            assert container.driver() is driver
        create_driver.assert_called_once()
