import pytest

from certchain import specs
from certchain.common.protocol import ServerLeaf, ServerRootCA
from certchain.crypto import codec, pki


@pytest.fixture
def server_leaf_spec():
    return specs.build(ServerLeaf())


@pytest.fixture
def root_signed():
    """A freshly issued self-signed server root CA."""
    return pki.sign(specs.build(ServerRootCA()))


@pytest.fixture
def root_encoded(root_signed):
    return codec.encode(root_signed)
