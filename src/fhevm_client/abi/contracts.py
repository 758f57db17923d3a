"""JSON ABIs for the confidential contracts driven by the workflows."""


def _param(name, type_, internal_type=None):
    return {"name": name, "type": type_, "internalType": internal_type or type_}


def _function(name, inputs, outputs=(), state_mutability="nonpayable"):
    return {
        "type": "function",
        "name": name,
        "inputs": list(inputs),
        "outputs": list(outputs),
        "stateMutability": state_mutability,
    }


def _event(name, inputs):
    return {
        "type": "event",
        "name": name,
        "anonymous": False,
        "inputs": [
            {"name": n, "type": t, "internalType": t, "indexed": indexed}
            for n, t, indexed in inputs
        ],
    }


EBATCHER_ABI = [
    _function(
        "MAX_BATCH_SIZE", [], [_param("", "uint256")], state_mutability="view"
    ),
    _function(
        "batchSendTokenSameAmount",
        [
            _param("token", "address", "contract IERC7984"),
            _param("recipients", "address[]"),
            _param("amountPerRecipient", "bytes32", "externalEuint64"),
            _param("inputProof", "bytes"),
        ],
    ),
    _function(
        "batchSendTokenDifferentAmounts",
        [
            _param("token", "address", "contract IERC7984"),
            _param("recipients", "address[]"),
            _param("amounts", "bytes32[]", "externalEuint64[]"),
            _param("inputProof", "bytes"),
        ],
    ),
    _function(
        "tokenRescue",
        [
            _param("token", "address", "contract IERC7984"),
            _param("to", "address"),
            _param("amount", "bytes32", "externalEuint64"),
            _param("inputProof", "bytes"),
        ],
    ),
]

ERC7984_ABI = [
    _function(
        "confidentialBalanceOf",
        [_param("account", "address")],
        [_param("", "bytes32", "euint64")],
        state_mutability="view",
    ),
    _function("decimals", [], [_param("", "uint8")], state_mutability="view"),
    _function("symbol", [], [_param("", "string")], state_mutability="view"),
    _function("name", [], [_param("", "string")], state_mutability="view"),
    _function(
        "isOperator",
        [_param("holder", "address"), _param("spender", "address")],
        [_param("", "bool")],
        state_mutability="view",
    ),
    _function(
        "setOperator",
        [_param("operator", "address"), _param("until", "uint48")],
    ),
]

EWETH_ABI = [
    _function("deposit", [], state_mutability="payable"),
    _function(
        "withdraw",
        [
            _param("amount", "bytes32", "externalEuint64"),
            _param("inputProof", "bytes"),
        ],
    ),
    _function(
        "completeWithdrawal",
        [
            _param("handle", "bytes32"),
            _param("cleartexts", "bytes"),
            _param("decryptionProof", "bytes"),
        ],
    ),
    _function(
        "confidentialBalanceOf",
        [_param("account", "address")],
        [_param("", "uint256")],
        state_mutability="view",
    ),
    _function(
        "withdrawalRequests",
        [_param("handle", "bytes32")],
        [_param("user", "address"), _param("isPending", "bool")],
        state_mutability="view",
    ),
    _function("makeBalancePubliclyDecryptable", [], [_param("", "uint256")]),
    _function(
        "makeBalancePubliclyDecryptableFor",
        [_param("account", "address")],
        [_param("", "uint256")],
    ),
    _function("name", [], [_param("", "string")], state_mutability="view"),
    _function("symbol", [], [_param("", "string")], state_mutability="view"),
    _event("Deposit", [("dest", "address", True), ("amount", "uint256", False)]),
    _event("Withdrawal", [("source", "address", True), ("amount", "uint64", False)]),
    _event(
        "WithdrawalRequested",
        [("source", "address", True), ("handle", "bytes32", True)],
    ),
]
