"""Built-in supplier directory.

Used when no DIRECTORY_FILE is configured. Entries follow the same shape as
the JSON file: name, contact e-mail and the product the farmer grows.
"""

DEFAULT_SUPPLIERS = [
    {
        "name": "John Smith",
        "email": "pbfgmarketplace@gmail.com",
        "product": "potato",
    },
    {
        "name": "Maria Garcia",
        "email": "pbfgmarketplace@gmail.com",
        "product": "tomato",
    },
    {
        "name": "David Chen",
        "email": "pbfgmarketplace@gmail.com",
        "product": "tomato",
    },
]
