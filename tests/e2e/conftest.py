import os, pytest
from web3 import Web3

def pytest_addoption(parser):
    parser.addoption("--rpc", action="store", default=os.getenv("FORK_RPC_URL"))

@pytest.fixture(scope="session")
def rpc_url(pytestconfig):
    return pytestconfig.getoption("--rpc")

@pytest.fixture(scope="session")
def w3(rpc_url):
    if not rpc_url:
        pytest.skip("FORK_RPC_URL not set")
    w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": 20}))
    assert w3.is_connected(), "RPC connection failed"
    return w3

@pytest.fixture(scope="session")
def network(w3):
    from vault_config import load_config
    config = load_config({})
    for net in config.networks.values():
        if net.chain_id == w3.eth.chain_id:
            return net
    pytest.skip(f"chainId {w3.eth.chain_id} is not a configured network")
