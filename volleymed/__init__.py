"""Django project package for the VolleyMed medical documentation service."""
