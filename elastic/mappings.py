def mapping_transactions():
    props = {
        "transactionId": {"type": "keyword"},
        "userId": {"type": "keyword"},
        "date": {"type": "date"},
        "type": {"type": "keyword"},
        "amount": {"type": "scaled_float", "scaling_factor": 100},
        "balance": {"type": "scaled_float", "scaling_factor": 100},
        "counterparty": {"type": "text", "fields": {"raw": {"type": "keyword", "ignore_above": 256}}},
        "description": {"type": "text", "fields": {"raw": {"type": "keyword", "ignore_above": 256}}},
        "category": {"type": "keyword"},
        "source": {"type": "keyword"},
        "confidence": {"type": "float"},
        "format": {"type": "keyword"},
        "parsingMethod": {"type": "keyword"},
        "mpesaReference": {"type": "keyword"},
        "statementRef": {"type": "keyword"},
        "metadata": {"type": "object", "enabled": False},
    }
    return {"mappings": {"properties": props}}
