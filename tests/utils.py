def customer_payload(**overrides):
    data = {
        "name": "Layla Haddad",
        "email": "layla@example.com",
        "mobile": "+971 50 123 4567",
        "company": "Haddad Trading FZE",
        "license_type": "freezone",
        "jurisdiction": "DMCC",
        "annual_turnover": "2500000.00",
        "lead_source": "website",
        "preferred_bank": "Emirates NBD",
    }
    data.update(overrides)
    return data


def application_payload(**overrides):
    data = {
        "amount": "150000",
        "number_of_shareholders": 2,
        "preferred_bank_1": "Emirates NBD",
        "preferred_bank_2": "Mashreq",
        "document_checklist_complete": True,
    }
    data.update(overrides)
    return data
