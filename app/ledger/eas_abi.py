"""Subset of the Ethereum Attestation Service contract ABI used here."""

EAS_ABI: list[dict[str, object]] = [
    {
        "type": "function",
        "name": "attest",
        "stateMutability": "payable",
        "inputs": [
            {
                "name": "request",
                "type": "tuple",
                "components": [
                    {"name": "schema", "type": "bytes32"},
                    {
                        "name": "data",
                        "type": "tuple",
                        "components": [
                            {"name": "recipient", "type": "address"},
                            {"name": "expirationTime", "type": "uint64"},
                            {"name": "revocable", "type": "bool"},
                            {"name": "refUID", "type": "bytes32"},
                            {"name": "data", "type": "bytes"},
                            {"name": "value", "type": "uint256"},
                        ],
                    },
                ],
            }
        ],
        "outputs": [{"name": "", "type": "bytes32"}],
    },
    {
        "type": "event",
        "name": "Attested",
        "anonymous": False,
        "inputs": [
            {"name": "recipient", "type": "address", "indexed": True},
            {"name": "attester", "type": "address", "indexed": True},
            {"name": "uid", "type": "bytes32", "indexed": False},
            {"name": "schemaUID", "type": "bytes32", "indexed": True},
        ],
    },
]
