RECIPIENT = "0x" + "ab" * 20
SCHEMA_UID = "0x0ab02d640f0bb27a4b16a89bb51e53fbe1693647bcb02048650d32a7d6cc8d40"
SCHEMA_LAYOUT = (
    "string event_name,string event_description,string occassion,"
    "string[] location_coordinates,string memory_description"
)
# Offline signing only.
TEST_PRIVATE_KEY = "0x" + "11" * 32
