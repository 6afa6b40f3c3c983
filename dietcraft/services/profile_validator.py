from typing import Optional

from fastapi import HTTPException

from dietcraft.core.rules import MAX_CLIENT_AGE, MIN_CLIENT_AGE
from dietcraft.models import ClientProfile


class ClientProfileValidator:
    def validate(self, client: Optional[ClientProfile]) -> ClientProfile:
        """
        Checks that a client profile is usable for plan generation.
        Raises HTTPException(400) before any quota or AI call is made.
        """

        # 1. Client data present
        if client is None:
            raise HTTPException(
                status_code=400,
                detail={
                    "error_code": "CLIENT_DATA_REQUIRED",
                    "message": "Client data is required",
                    "suggestion": "Select a saved client or provide a client profile."
                }
            )

        # 2. Name present
        if not client.full_name or not client.full_name.strip():
            raise HTTPException(
                status_code=400,
                detail={
                    "error_code": "CLIENT_NAME_REQUIRED",
                    "message": "The client's full name is required.",
                    "suggestion": "Add the client's name to their profile."
                }
            )

        # 3. Age, when given, must be a plausible whole number
        if client.age is not None and str(client.age).strip():
            age_text = str(client.age).strip()
            if not age_text.isdigit() or not (MIN_CLIENT_AGE <= int(age_text) <= MAX_CLIENT_AGE):
                raise HTTPException(
                    status_code=400,
                    detail={
                        "error_code": "INVALID_AGE",
                        "message": f"Age '{age_text}' is not valid.",
                        "suggestion": f"Enter an age between {MIN_CLIENT_AGE} and {MAX_CLIENT_AGE}."
                    }
                )

        return client

profile_validator = ClientProfileValidator()
