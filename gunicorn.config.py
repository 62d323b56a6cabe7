import os

# gevent workers patch the standard library when they boot, so the app itself does not
worker_class = "gevent"
# Collection locks live in-process; more workers would race on the JSON files
workers = 1
worker_connections = 1000
timeout = 120
bind = "0.0.0.0:{}".format(os.getenv("PORT", "10000"))
wsgi_app = "app:create_app()"

loglevel = "info"
accesslog = "-"
errorlog = "-"
