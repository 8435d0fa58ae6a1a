"""Remote UI profiles and the operations built on them."""
