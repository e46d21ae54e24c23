from django.db import models


# This is not Django's auth user: there is no login, no permissions and no sessions, just enough
# to own content and cast votes. 'password' holds a django.contrib.auth.hashers hash; the data
# access layer hashes before saving, so never assign a raw password here.

class UserModel(models.Model):
    username = models.CharField(max_length=150, unique=True)
    password = models.CharField(max_length=128)
    email = models.EmailField(unique=True, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'user'

    def __str__(self):
        return self.username
